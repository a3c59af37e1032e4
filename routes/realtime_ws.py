"""WebSocket endpoint for streaming frames and session commands."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.realtime.session_store import SessionStore
from services.realtime.ws_session import RealtimeSessionHandler

router = APIRouter()


def _require_session_store(websocket: WebSocket) -> SessionStore:
	store = getattr(websocket.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


@router.websocket("/ws/{session_id}")
async def realtime_socket(websocket: WebSocket, session_id: str, store: SessionStore = Depends(_require_session_store)):
	"""Accept frames and commands for one session and push its state changes."""
	await websocket.accept()
	try:
		session = store.get(session_id)
	except KeyError:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Session not found"}))
		await websocket.close()
		return

	handler = RealtimeSessionHandler(session, websocket)
	handler.attach()
	await websocket.send_text(json.dumps(
		{"type": "state", "session_id": session_id, "state": session.controller.state.to_dict()}
	))
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			except (KeyError, RuntimeError):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid websocket frame"}))
				continue
			try:
				payload = json.loads(raw)
			except json.JSONDecodeError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(payload)
	finally:
		handler.detach()
	try:
		await websocket.close()
	except RuntimeError:
		pass
