"""Sentence polishing helper using the OpenAI Responses API.

Given the raw space-separated words accumulated from sign recognition,
this module asks a text model for one natural, grammatical sentence that
keeps the meaning of those words.
"""

import logging
import os
import time

from openai import AsyncOpenAI

from services.realtime.prompts import polish_prompt
from services.realtime.providers import ProviderError
from services.realtime.response_parser import extract_text

DEFAULT_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini")


class SentencePolisher:
    """Turn accumulated sign labels into a polished sentence."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_TEXT_MODEL) -> None:
        if client is None:
            raise ValueError("OpenAI AsyncOpenAI client is required.")
        self.client = client
        self.model = model

    async def refine(self, raw_text: str) -> str:
        """Return a polished sentence for `raw_text`.

        Args:
            raw_text: Space-joined labels captured so far.

        Returns:
            The polished sentence, the raw text if the model returned nothing,
            or an empty string for blank input (no request is made).

        Raises:
            ProviderError: If the request to OpenAI fails.
        """
        if not raw_text or not raw_text.strip():
            return ""

        start = time.time()
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=polish_prompt(raw_text),
                temperature=0.7,
            )
        except Exception as exc:
            logging.error("Sentence polishing error: %s", exc)
            raise ProviderError("Sentence polishing failed.") from exc

        polished = (extract_text(response) or raw_text).strip()
        logging.info("Sentence polishing latency: %.3fs", time.time() - start)
        return polished
