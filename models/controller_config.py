from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ControllerConfig:
    """Tunables for a translation stream controller.

    Attributes:
        capture_interval: Seconds between capture ticks while capturing.
        frame_height: Height in pixels of the still sent for classification.
        history_limit: Maximum number of entries kept in session history.
        provider_timeout: Optional per-call timeout in seconds; None waits forever.
    """

    capture_interval: float = 2.0
    frame_height: int = 720
    history_limit: int = 15
    provider_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ControllerConfig":
        """Build a config from CAPTURE_INTERVAL_MS, FRAME_HEIGHT, HISTORY_LIMIT and PROVIDER_TIMEOUT_S."""
        timeout_raw = os.getenv("PROVIDER_TIMEOUT_S", "").strip()
        try:
            return cls(
                capture_interval=int(os.getenv("CAPTURE_INTERVAL_MS", "2000")) / 1000.0,
                frame_height=int(os.getenv("FRAME_HEIGHT", "720")),
                history_limit=int(os.getenv("HISTORY_LIMIT", "15")),
                provider_timeout=float(timeout_raw) if timeout_raw else None,
            )
        except ValueError as exc:
            raise RuntimeError(f"Invalid controller configuration: {exc}") from exc
