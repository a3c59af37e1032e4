"""Prompt helpers for sign classification and sentence polishing."""

from __future__ import annotations

from models.session_models import NO_SIGN


def classifier_prompt() -> str:
	"""Return the instruction sent alongside every captured frame."""
	return (
		"Identify the ASL sign shown in this image. "
		"Output: ONE word/label only. "
		f"If unclear: \"{NO_SIGN}\". "
		"Be extremely concise. No punctuation."
	)


def polish_prompt(raw_words: str) -> str:
	"""Return the prompt that turns captured words into a sentence."""
	return (
		f"The following is a list of words captured via sign language recognition: \"{raw_words}\". "
		"Construct a single, grammatically correct and natural English sentence using these words. "
		"Only output the sentence. No extra text."
	)
