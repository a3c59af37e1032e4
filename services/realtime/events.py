"""Events consumed by the translation stream controller's queue."""

from __future__ import annotations

from dataclasses import dataclass

from models.session_models import ClassificationResult


@dataclass(frozen=True)
class CaptureStarted:
	pass


@dataclass(frozen=True)
class CaptureSucceeded:
	result: ClassificationResult


@dataclass(frozen=True)
class CaptureFailed:
	message: str


@dataclass(frozen=True)
class RefineStarted:
	pass


@dataclass(frozen=True)
class RefineSucceeded:
	text: str


@dataclass(frozen=True)
class RefineFailed:
	pass


@dataclass(frozen=True)
class CameraToggled:
	pass


@dataclass(frozen=True)
class CaptureEnabled:
	pass


@dataclass(frozen=True)
class CaptureDisabled:
	pass


@dataclass(frozen=True)
class CaptureToggled:
	pass


@dataclass(frozen=True)
class HistoryCleared:
	pass


@dataclass(frozen=True)
class SentenceCleared:
	pass
