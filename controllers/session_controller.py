"""Session lifecycle and command helpers for translation sessions."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import HTTPException, Request

from models.session_models import SessionState
from services.realtime.session_store import Session, SessionStore


def _store(request: Request) -> SessionStore:
	store = getattr(request.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


def _session(request: Request, session_id: str) -> Session:
	try:
		return _store(request).get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found") from exc


def _state_response(session_id: str, state: SessionState) -> Dict[str, Any]:
	return {"session_id": session_id, "state": state.to_dict()}


async def start_session(request: Request, camera_on: bool = True) -> Dict[str, Any]:
	"""Create a new translation session and return its id and initial state."""
	session = _store(request).create(camera_on=camera_on)
	return _state_response(session.session_id, session.controller.state)


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	session = _session(request, session_id)
	return _state_response(session_id, session.controller.state)


async def end_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Stop a session and drop its persisted transcript."""
	store = _store(request)
	try:
		await store.close(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=f"Session {session_id} not found") from exc
	removed = 0
	if store.transcript is not None:
		removed = await store.transcript.delete_session(session_id)
	return {"session_id": session_id, "closed": True, "transcript_entries_removed": removed}


async def push_frame(request: Request, session_id: str, frame: bytes) -> Dict[str, Any]:
	"""Replace the session's latest frame with an uploaded still."""
	session = _session(request, session_id)
	accepted = session.push_frame(frame)
	return {"session_id": session_id, "accepted": accepted}


async def run_command(request: Request, session_id: str, command: str) -> Dict[str, Any]:
	"""Apply one of the session commands and return the resulting state.

	Args:
		command: Name of a `TranslationStreamController` coroutine method such as
			`toggle_camera`, `enable_capture` or `refine`.
	"""
	session = _session(request, session_id)
	state = await getattr(session.controller, command)()
	return _state_response(session_id, state)


async def get_transcript(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return every entry accepted in the session, including ones evicted from history."""
	_session(request, session_id)
	store = _store(request)
	if store.transcript is None:
		raise HTTPException(status_code=503, detail="Transcript log is not configured")
	records = await store.transcript.list_for_session(session_id)
	return {"session_id": session_id, "entries": [asdict(record) for record in records]}
