"""Validation helpers for uploaded video frames."""

import base64
import binascii

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/bmp",
}


def decode_base64_image(data: str) -> bytes:
    """Return raw image bytes from base64 text, accepting `data:` URLs.

    Raises:
        ValueError: If the text is empty or not valid base64.
    """
    text = (data or "").strip()
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    if not text:
        raise ValueError("Image payload is required.")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Image payload must be valid base64.") from exc


def validate_frame_file(frame_file: UploadFile) -> None:
    """Validate that an uploaded frame declares a supported image type.

    A missing content type is tolerated; Pillow decides at capture time.
    """
    if frame_file.content_type:
        content_type = frame_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {frame_file.content_type}")


async def read_frame_bytes(frame_file: UploadFile) -> bytes:
    """Read validated frame bytes, ensuring the upload is not empty."""
    validate_frame_file(frame_file)
    frame_bytes = await frame_file.read()
    if not frame_bytes:
        raise HTTPException(status_code=400, detail="Uploaded frame is empty.")
    return frame_bytes
