"""Frame encoder service.

Wraps Pillow to turn a captured video still into the compressed image
sent for sign classification: a color JPEG scaled proportionally to a
fixed height (720 px by default).

Public class: `FrameEncoder`

Example:
    encoder = FrameEncoder(target_height=720)
    jpeg_bytes = encoder.encode(frame_bytes)
"""
from __future__ import annotations

import io
from typing import Tuple

from PIL import Image


class FrameEncoder:
    """Scale and compress still frames for classification.

    Args:
        target_height: Output height in pixels; width keeps the aspect ratio.
        quality: JPEG quality passed to Pillow.
        background: Color used to flatten frames that carry an alpha channel.
    """

    def __init__(self, target_height: int = 720, quality: int = 85, background: Tuple[int, int, int] | None = None):
        if target_height <= 0:
            raise ValueError("target_height must be positive")
        self.target_height = target_height
        self.quality = quality
        self.background = background or (255, 255, 255)

    def encode(self, data: bytes) -> bytes:
        """Return JPEG bytes for a raw encoded image (PNG, JPEG, WebP, ...).

        Raises:
            ValueError: If the bytes cannot be opened as an image.
        """
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except Exception as exc:
            raise ValueError("Frame bytes are not a supported image format") from exc

        if src.mode in ("RGBA", "LA") or (src.mode == "P" and "transparency" in src.info):
            src = src.convert("RGBA")
            flat = Image.new("RGB", src.size, self.background)
            flat.paste(src, mask=src.split()[3])
            src = flat
        elif src.mode != "RGB":
            src = src.convert("RGB")

        width, height = src.size
        if height != self.target_height:
            new_width = max(1, round(width * self.target_height / height))
            src = src.resize((new_width, self.target_height), Image.LANCZOS)

        out_io = io.BytesIO()
        src.save(out_io, format="JPEG", quality=self.quality)
        return out_io.getvalue()
