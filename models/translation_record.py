from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class TranslationRecord:
    """In-memory representation of a row in the TRANSLATION table.

    Attributes:
        id: Primary key (None for new records).
        session_id: Session the entry was accepted in.
        entry_id: Id of the accepted history entry.
        text: Accepted sign label.
        confidence: Confidence attached to the entry.
        timestamp_ms: Monotonic millisecond timestamp of the entry.
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: Optional[int]
    session_id: str
    entry_id: str
    text: str
    confidence: Optional[float] = None
    timestamp_ms: Optional[int] = None
    created_at: Optional[int] = None
