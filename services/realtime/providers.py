"""Interfaces for the inference backends used by the stream controller."""

from __future__ import annotations

from typing import Protocol


class ProviderError(RuntimeError):
	"""Raised when a classification or refinement backend call fails."""


class ClassificationProvider(Protocol):
	async def classify(self, image: bytes) -> str:
		"""Return one label for a JPEG still, or `NO_SIGN_DETECTED`."""
		...


class RefinementProvider(Protocol):
	async def refine(self, raw_text: str) -> str:
		"""Return a polished sentence built from `raw_text`."""
		...
