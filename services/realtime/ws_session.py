"""Dispatch realtime websocket events to the session controller."""
from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import WebSocket

from models.session_models import SessionState
from services.realtime.session_store import Session
from utils.media_validation import decode_base64_image


class RealtimeSessionHandler:
	"""Route websocket messages for a single translation session."""

	def __init__(self, session: Session, websocket: WebSocket) -> None:
		self.session = session
		self.websocket = websocket
		self._unsubscribe = None

	def attach(self) -> None:
		"""Push every state change of the session to this websocket."""
		self._unsubscribe = self.session.controller.subscribe(self._push_state)

	def detach(self) -> None:
		if self._unsubscribe is not None:
			self._unsubscribe()
			self._unsubscribe = None

	async def handle(self, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		controller = self.session.controller
		try:
			if message_type == "frame.push":
				accepted = self.session.push_frame(decode_base64_image(payload.get("image_b64") or ""))
				result = {"type": "frame.ack", "accepted": accepted}
			elif message_type == "camera.toggle":
				result = self._state_message(await controller.toggle_camera())
			elif message_type == "capture.start":
				result = self._state_message(await controller.enable_capture())
			elif message_type == "capture.stop":
				result = self._state_message(await controller.disable_capture())
			elif message_type == "capture.toggle":
				result = self._state_message(await controller.toggle_capture())
			elif message_type == "sentence.refine":
				controller.request_refine()
				result = {"type": "refine.ack"}
			elif message_type == "history.clear":
				result = self._state_message(await controller.clear_history())
			elif message_type == "sentence.clear":
				result = self._state_message(await controller.clear_sentence())
			elif message_type == "state.get":
				result = self._state_message(controller.state)
			else:
				raise ValueError("Unsupported message type.")
			result["request_id"] = request_id
			await self._send(result)
		except Exception as exc:
			await self._send_error(request_id, str(exc))

	async def _push_state(self, state: SessionState) -> None:
		await self._send(self._state_message(state))

	def _state_message(self, state: SessionState) -> Dict[str, Any]:
		return {"type": "state", "session_id": self.session.session_id, "state": state.to_dict()}

	async def _send_error(self, request_id: Any, detail: str) -> None:
		await self._send({"type": "error", "request_id": request_id, "detail": detail})

	async def _send(self, payload: Dict[str, Any]) -> None:
		await self.websocket.send_text(json.dumps(payload))
