"""Simple in-memory store for translation sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from uuid import uuid4

from dal.translation_dal import TranslationDAL
from models.controller_config import ControllerConfig
from models.session_models import TranslationEntry
from services.realtime.frame_source import LatestFrameSource
from services.realtime.providers import ClassificationProvider, RefinementProvider
from services.realtime.stream_controller import TranslationStreamController

LOGGER = logging.getLogger(__name__)


@dataclass
class Session:
	"""A live session: its controller and the frame buffer the client feeds."""

	session_id: str
	controller: TranslationStreamController
	frames: LatestFrameSource

	def push_frame(self, frame: bytes) -> bool:
		"""Store the client's latest frame; frames sent while the camera is off are dropped."""
		if not self.controller.state.camera_on:
			return False
		self.frames.push(frame)
		return True


class SessionStore:
	"""Create, look up and close translation sessions."""

	def __init__(
		self,
		classifier_factory: Callable[[], ClassificationProvider],
		polisher_factory: Callable[[], RefinementProvider],
		config: Optional[ControllerConfig] = None,
		transcript: Optional[TranslationDAL] = None,
	) -> None:
		self._sessions: Dict[str, Session] = {}
		self.classifier_factory = classifier_factory
		self.polisher_factory = polisher_factory
		self.config = config or ControllerConfig()
		self.transcript = transcript

	def create(self, camera_on: bool = True) -> Session:
		"""Create a new session and its controller."""
		session_id = uuid4().hex
		frames = LatestFrameSource()
		controller = TranslationStreamController(
			self.classifier_factory(),
			self.polisher_factory(),
			frames,
			config=self.config,
			camera_on=camera_on,
		)
		if self.transcript is not None:
			controller.on_entry(self._transcript_writer(session_id))
		session = Session(session_id=session_id, controller=controller, frames=frames)
		self._sessions[session_id] = session
		LOGGER.info("Session %s created (camera_on=%s)", session_id, camera_on)
		return session

	def get(self, session_id: str) -> Session:
		"""Return a session or raise KeyError if missing."""
		session = self._sessions.get(session_id)
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		return session

	async def close(self, session_id: str) -> None:
		"""Stop a session's controller and forget it."""
		session = self._sessions.pop(session_id, None)
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		await session.controller.close()
		LOGGER.info("Session %s closed", session_id)

	async def close_all(self) -> None:
		for session_id in list(self._sessions):
			await self.close(session_id)

	def __len__(self) -> int:
		return len(self._sessions)

	def _transcript_writer(self, session_id: str):
		async def write(entry: TranslationEntry) -> None:
			await self.transcript.append_entry(session_id, entry)

		return write
