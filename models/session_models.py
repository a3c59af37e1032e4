"""Session domain models for realtime sign translation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

NO_SIGN = "NO_SIGN_DETECTED"
ACCEPTED_CONFIDENCE = 0.95


@dataclass(frozen=True)
class ClassificationResult:
	"""One label returned for a captured frame."""

	label: str
	confidence: float = ACCEPTED_CONFIDENCE

	@property
	def is_sign(self) -> bool:
		return bool(self.label) and self.label != NO_SIGN


@dataclass(frozen=True)
class TranslationEntry:
	"""History record for an accepted label. Never mutated once created."""

	id: str
	text: str
	timestamp: int
	confidence: float = ACCEPTED_CONFIDENCE


@dataclass(frozen=True)
class SessionState:
	"""Aggregate state of one translation session.

	Owned by a single `TranslationStreamController`; every change produces a new
	instance through `services.realtime.transitions`.
	"""

	camera_on: bool = False
	capturing: bool = False
	processing: bool = False
	generating_sentence: bool = False
	current_label: str = ""
	sentence: str = ""
	history: Tuple[TranslationEntry, ...] = field(default_factory=tuple)
	last_error: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		"""Return a JSON-friendly snapshot."""
		data = asdict(self)
		data["history"] = [asdict(entry) for entry in self.history]
		return data
