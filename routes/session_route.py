"""FastAPI routes for translation sessions."""

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.session_controller import (
	end_session,
	get_session,
	get_transcript,
	push_frame,
	run_command,
	start_session,
)
from utils.media_validation import read_frame_bytes

router = APIRouter(prefix="/sessions")


class StartPayload(BaseModel):
	camera_on: bool = True


async def _command(request: Request, session_id: str, command: str):
	try:
		return await run_command(request, session_id, command)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("")
async def start_session_route(request: Request, payload: StartPayload | None = None):
	try:
		return await start_session(request, payload.camera_on if payload else True)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	return await get_session(request, session_id)


@router.delete("/{session_id}")
async def end_session_route(request: Request, session_id: str):
	try:
		return await end_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/frames")
async def push_frame_route(request: Request, session_id: str, frame: UploadFile = File(...)):
	"""Upload the latest still from the client's camera."""
	frame_bytes = await read_frame_bytes(frame)
	return await push_frame(request, session_id, frame_bytes)


@router.post("/{session_id}/camera/toggle")
async def toggle_camera_route(request: Request, session_id: str):
	return await _command(request, session_id, "toggle_camera")


@router.post("/{session_id}/capture/start")
async def start_capture_route(request: Request, session_id: str):
	return await _command(request, session_id, "enable_capture")


@router.post("/{session_id}/capture/stop")
async def stop_capture_route(request: Request, session_id: str):
	return await _command(request, session_id, "disable_capture")


@router.post("/{session_id}/capture/toggle")
async def toggle_capture_route(request: Request, session_id: str):
	return await _command(request, session_id, "toggle_capture")


@router.post("/{session_id}/refine")
async def refine_route(request: Request, session_id: str):
	"""Polish the accumulated sentence and return the resulting state."""
	return await _command(request, session_id, "refine")


@router.delete("/{session_id}/history")
async def clear_history_route(request: Request, session_id: str):
	return await _command(request, session_id, "clear_history")


@router.delete("/{session_id}/sentence")
async def clear_sentence_route(request: Request, session_id: str):
	return await _command(request, session_id, "clear_sentence")


@router.get("/{session_id}/transcript")
async def transcript_route(request: Request, session_id: str):
	try:
		return await get_transcript(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
