"""Description: Sign classification for captured frames using OpenAI's Responses API."""

import base64
import logging
import os
import time
from typing import Any, Dict, List

from openai import AsyncOpenAI

from models.session_models import NO_SIGN
from services.realtime.prompts import classifier_prompt
from services.realtime.providers import ProviderError
from services.realtime.response_parser import extract_text, extract_usage

DEFAULT_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")


def to_image_data_url(image_bytes: bytes) -> str:
    """Convert raw JPEG bytes into a data URL suitable for vision input."""
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:image/jpeg;base64,{encoded}"


class SignClassifier:
    """Classify a single still frame into one sign label."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_VISION_MODEL) -> None:
        """Initialize the classifier with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model

    async def classify(self, image: bytes) -> str:
        """Return one concise label for the frame, or the no-sign sentinel.

        Raises:
            ProviderError: If the request to OpenAI fails.
        """
        if not image:
            raise ValueError("Image content is required for classification.")

        start_time = time.time()
        response = await self._create_response(self._build_inputs(image))
        label = extract_text(response).strip()
        usage = extract_usage(response)
        logging.info(
            "Sign classification latency: %.3fs (input_tokens=%s, output_tokens=%s)",
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return label or NO_SIGN

    def _build_inputs(self, image: bytes) -> List[Dict[str, Any]]:
        return [
            {
                "type": "message",
                "role": "user",
                "content": [
                    {"type": "input_image", "image_url": to_image_data_url(image)},
                    {"type": "input_text", "text": classifier_prompt()},
                ],
            }
        ]

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> Any:
        """Send the frame to the OpenAI Responses API with deterministic sampling."""
        try:
            return await self.client.responses.create(
                model=self.model,
                input=inputs,
                temperature=0.0,
                top_p=0.1,
            )
        except Exception as exc:
            logging.error("Error during OpenAI sign classification call: %s", exc)
            raise ProviderError("API busy or network slow.") from exc
