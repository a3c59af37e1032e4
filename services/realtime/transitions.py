"""Pure state transitions for a translation session.

Each function takes the prior `SessionState` plus the event payload and returns
the next state. Nothing here performs I/O, so the rules can be tested without a
scheduler or a provider.
"""

from __future__ import annotations

from dataclasses import replace

from models.session_models import ACCEPTED_CONFIDENCE, NO_SIGN, SessionState, TranslationEntry

HISTORY_LIMIT = 15


def capture_started(state: SessionState) -> SessionState:
	"""Mark a classification call as in flight."""
	return replace(state, processing=True, last_error=None)


def capture_succeeded(
	state: SessionState,
	label: str,
	now_ms: int,
	entry_id: str,
	history_limit: int = HISTORY_LIMIT,
) -> SessionState:
	"""Apply a classification label to the sentence and history.

	A result landing after the camera was switched off is stale: only the
	in-flight flag is released.
	"""
	if not state.camera_on:
		return replace(state, processing=False)

	label = (label or "").strip()
	if not label or label == NO_SIGN:
		return replace(state, current_label=NO_SIGN, processing=False, last_error=None)

	words = state.sentence.split()
	last_word = words[-1] if words else None
	sentence = state.sentence
	if last_word is None or last_word.lower() != label.lower():
		sentence = f"{state.sentence} {label}" if state.sentence else label

	history = state.history
	if not history or history[-1].text != label:
		entry = TranslationEntry(id=entry_id, text=label, timestamp=now_ms, confidence=ACCEPTED_CONFIDENCE)
		history = (history + (entry,))[-history_limit:]

	return replace(
		state,
		current_label=label,
		sentence=sentence,
		history=history,
		processing=False,
		last_error=None,
	)


def capture_failed(state: SessionState, message: str) -> SessionState:
	"""Record a classification failure; accumulated text is left alone.

	Like a late success, a failure landing after camera-off only releases the
	in-flight flag.
	"""
	if not state.camera_on:
		return replace(state, processing=False)
	return replace(state, processing=False, last_error=message or "Translation failed")


def refine_started(state: SessionState) -> SessionState:
	return replace(state, generating_sentence=True)


def refine_succeeded(state: SessionState, text: str) -> SessionState:
	"""Overwrite the sentence with the polished text."""
	return replace(state, sentence=text, generating_sentence=False)


def refine_failed(state: SessionState) -> SessionState:
	return replace(state, generating_sentence=False)


def toggle_camera(state: SessionState) -> SessionState:
	"""Flip the camera; switching it off also stops capture and clears the label."""
	if state.camera_on:
		return replace(state, camera_on=False, capturing=False, current_label="")
	return replace(state, camera_on=True)


def enable_capture(state: SessionState) -> SessionState:
	if not state.camera_on:
		return state
	return replace(state, capturing=True)


def disable_capture(state: SessionState) -> SessionState:
	return replace(state, capturing=False)


def toggle_capture(state: SessionState) -> SessionState:
	if state.capturing:
		return disable_capture(state)
	return enable_capture(state)


def clear_history(state: SessionState) -> SessionState:
	return replace(state, history=())


def clear_sentence(state: SessionState) -> SessionState:
	return replace(state, sentence="", current_label="")


def should_capture(state: SessionState) -> bool:
	"""Return True when a capture tick may issue a classification call."""
	return state.capturing and state.camera_on and not state.processing
