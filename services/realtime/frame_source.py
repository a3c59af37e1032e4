"""Latest-frame buffer fed by the client's video stream."""

from __future__ import annotations

from typing import Optional, Protocol


class FrameSource(Protocol):
	"""Anything the controller can read the current video still from."""

	def read(self) -> Optional[bytes]:
		...

	def clear(self) -> None:
		...


class LatestFrameSource:
	"""Keep only the most recent frame pushed by the client."""

	def __init__(self) -> None:
		self._frame: Optional[bytes] = None

	def push(self, frame: bytes) -> None:
		"""Replace the current frame."""
		if not frame:
			raise ValueError("Frame payload is empty.")
		self._frame = frame

	def read(self) -> Optional[bytes]:
		return self._frame

	def clear(self) -> None:
		self._frame = None
