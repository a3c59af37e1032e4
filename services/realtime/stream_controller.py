"""Translation stream controller: capture scheduling, accumulation and refinement."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Tuple
from uuid import uuid4

from models.controller_config import ControllerConfig
from models.session_models import NO_SIGN, ClassificationResult, SessionState, TranslationEntry
from services.frame_encoder import FrameEncoder
from services.realtime import transitions
from services.realtime.capture_scheduler import CaptureScheduler, SleepFn
from services.realtime.events import (
	CameraToggled,
	CaptureDisabled,
	CaptureEnabled,
	CaptureFailed,
	CaptureStarted,
	CaptureSucceeded,
	CaptureToggled,
	HistoryCleared,
	RefineFailed,
	RefineStarted,
	RefineSucceeded,
	SentenceCleared,
)
from services.realtime.frame_source import FrameSource, LatestFrameSource
from services.realtime.providers import ClassificationProvider, RefinementProvider

LOGGER = logging.getLogger(__name__)

StateListener = Callable[[SessionState], Awaitable[None]]
EntryListener = Callable[[TranslationEntry], Awaitable[None]]
Transition = Tuple[SessionState, SessionState]


def _monotonic_ms() -> int:
	return time.monotonic_ns() // 1_000_000


class TranslationStreamController:
	"""Own one session's state and coordinate capture and refinement.

	Every state change is an event pushed onto a single queue and applied by
	one consumer task, so provider completions and user commands are applied
	strictly in arrival order. Listeners must not dispatch back into the
	controller.
	"""

	def __init__(
		self,
		classifier: ClassificationProvider,
		polisher: RefinementProvider,
		frame_source: Optional[FrameSource] = None,
		*,
		config: Optional[ControllerConfig] = None,
		encoder: Optional[FrameEncoder] = None,
		camera_on: bool = False,
		clock: Callable[[], int] = _monotonic_ms,
		id_factory: Callable[[], str] = lambda: uuid4().hex,
		sleep: SleepFn = asyncio.sleep,
	) -> None:
		self.classifier = classifier
		self.polisher = polisher
		self.frame_source = frame_source if frame_source is not None else LatestFrameSource()
		self.config = config or ControllerConfig()
		self.encoder = encoder or FrameEncoder(target_height=self.config.frame_height)
		self.state = SessionState(camera_on=camera_on)
		self.scheduler = CaptureScheduler(self.capture_once, interval=self.config.capture_interval, sleep=sleep)
		self._clock = clock
		self._id_factory = id_factory
		self._queue: "asyncio.Queue[Tuple[Any, asyncio.Future]]" = asyncio.Queue()
		self._consumer: Optional[asyncio.Task] = None
		self._refine_task: Optional[asyncio.Task] = None
		self._state_listeners: List[StateListener] = []
		self._entry_listeners: List[EntryListener] = []
		self._closed = False

	# -- listeners ---------------------------------------------------------

	def subscribe(self, listener: StateListener) -> Callable[[], None]:
		"""Call `listener` with every new state; returns an unsubscribe callable."""
		self._state_listeners.append(listener)

		def unsubscribe() -> None:
			if listener in self._state_listeners:
				self._state_listeners.remove(listener)

		return unsubscribe

	def on_entry(self, listener: EntryListener) -> None:
		"""Call `listener` with each newly accepted history entry."""
		self._entry_listeners.append(listener)

	# -- commands ----------------------------------------------------------

	async def toggle_camera(self) -> SessionState:
		return await self.dispatch(CameraToggled())

	async def enable_capture(self) -> SessionState:
		return await self.dispatch(CaptureEnabled())

	async def disable_capture(self) -> SessionState:
		return await self.dispatch(CaptureDisabled())

	async def toggle_capture(self) -> SessionState:
		return await self.dispatch(CaptureToggled())

	async def clear_history(self) -> SessionState:
		return await self.dispatch(HistoryCleared())

	async def clear_sentence(self) -> SessionState:
		return await self.dispatch(SentenceCleared())

	async def dispatch(self, event: Any) -> SessionState:
		"""Queue an event and return the state after it is applied."""
		_, after = await self._submit(event)
		return after

	# -- capture -----------------------------------------------------------

	async def capture_once(self) -> None:
		"""Run one capture tick: classify the latest frame and apply the result.

		Returns only after the outcome has been applied, which is what keeps the
		scheduler from re-arming while a classification is in flight.
		"""
		if not transitions.should_capture(self.state):
			LOGGER.debug("Capture tick skipped (capturing=%s, camera_on=%s, processing=%s)",
				self.state.capturing, self.state.camera_on, self.state.processing)
			return
		frame = self.frame_source.read()
		if frame is None:
			LOGGER.debug("Capture tick skipped: no frame available")
			return

		before, after = await self._submit(CaptureStarted())
		if before.processing or not after.processing:
			return

		try:
			image = await asyncio.to_thread(self.encoder.encode, frame)
			label = await self._with_timeout(self.classifier.classify(image), "Classification timed out.")
		except Exception as exc:
			LOGGER.error("Sign classification failed: %s", exc)
			outcome: Any = CaptureFailed(str(exc) or "Translation failed")
		else:
			outcome = CaptureSucceeded(ClassificationResult(label=(label or "").strip()))
		if self._closed:
			return
		await self._submit(outcome)

	# -- refinement --------------------------------------------------------

	async def refine(self) -> SessionState:
		"""Polish the current sentence; no-op when empty or already refining."""
		before, after = await self._submit(RefineStarted())
		if before.generating_sentence or not after.generating_sentence:
			return after

		try:
			polished = await self._with_timeout(self.polisher.refine(after.sentence), "Refinement timed out.")
		except Exception as exc:
			LOGGER.warning("Sentence refinement failed, keeping raw sentence: %s", exc)
			return await self.dispatch(RefineFailed())
		return await self.dispatch(RefineSucceeded(polished))

	def request_refine(self) -> asyncio.Task:
		"""Start a refinement in the background and return its task."""
		if self._refine_task is None or self._refine_task.done():
			self._refine_task = asyncio.create_task(self.refine())
		return self._refine_task

	# -- lifecycle ---------------------------------------------------------

	async def close(self) -> None:
		"""Stop capture, pending refinement and the event consumer."""
		self._closed = True
		self.scheduler.stop()
		tasks = [t for t in (self._refine_task, self._consumer) if t is not None and not t.done()]
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)
		while not self._queue.empty():
			_, future = self._queue.get_nowait()
			if not future.done():
				future.cancel()

	async def run(self) -> None:
		"""Consume events until cancelled."""
		while True:
			event, future = await self._queue.get()
			try:
				before = self.state
				after = self._reduce(before, event)
				self.state = after
				self._sync_effects(before, after)
				if after != before:
					await self._notify(event, before, after)
				if not future.done():
					future.set_result((before, after))
			except asyncio.CancelledError:
				future.cancel()
				raise
			except Exception as exc:
				LOGGER.error("Failed to apply %s: %s", type(event).__name__, exc)
				if not future.done():
					future.set_exception(exc)
			finally:
				self._queue.task_done()

	# -- internals ---------------------------------------------------------

	async def _submit(self, event: Any) -> Transition:
		if self._closed:
			raise RuntimeError("Controller is closed.")
		if self._consumer is None or self._consumer.done():
			self._consumer = asyncio.create_task(self.run())
		future: asyncio.Future = asyncio.get_running_loop().create_future()
		await self._queue.put((event, future))
		return await future

	def _reduce(self, state: SessionState, event: Any) -> SessionState:
		if isinstance(event, CaptureStarted):
			if not transitions.should_capture(state):
				return state
			return transitions.capture_started(state)
		if isinstance(event, CaptureSucceeded):
			return transitions.capture_succeeded(
				state,
				event.result.label if event.result.is_sign else NO_SIGN,
				now_ms=self._clock(),
				entry_id=self._id_factory(),
				history_limit=self.config.history_limit,
			)
		if isinstance(event, CaptureFailed):
			return transitions.capture_failed(state, event.message)
		if isinstance(event, RefineStarted):
			if not state.sentence or state.generating_sentence:
				return state
			return transitions.refine_started(state)
		if isinstance(event, RefineSucceeded):
			return transitions.refine_succeeded(state, event.text)
		if isinstance(event, RefineFailed):
			return transitions.refine_failed(state)
		if isinstance(event, CameraToggled):
			return transitions.toggle_camera(state)
		if isinstance(event, CaptureEnabled):
			return transitions.enable_capture(state)
		if isinstance(event, CaptureDisabled):
			return transitions.disable_capture(state)
		if isinstance(event, CaptureToggled):
			return transitions.toggle_capture(state)
		if isinstance(event, HistoryCleared):
			return transitions.clear_history(state)
		if isinstance(event, SentenceCleared):
			return transitions.clear_sentence(state)
		raise ValueError(f"Unsupported event: {event!r}")

	def _sync_effects(self, before: SessionState, after: SessionState) -> None:
		"""Keep the scheduler and video source in step with the flags."""
		if after.capturing and not self.scheduler.running:
			self.scheduler.start()
		elif not after.capturing and self.scheduler.running:
			self.scheduler.stop()
		if before.camera_on and not after.camera_on:
			self.frame_source.clear()

	async def _notify(self, event: Any, before: SessionState, after: SessionState) -> None:
		if isinstance(event, CaptureSucceeded) and after.history:
			newest = after.history[-1]
			if not before.history or before.history[-1].id != newest.id:
				for listener in list(self._entry_listeners):
					try:
						await listener(newest)
					except Exception as exc:
						LOGGER.error("Entry listener failed: %s", exc)
		for listener in list(self._state_listeners):
			try:
				await listener(after)
			except Exception as exc:
				LOGGER.error("State listener failed: %s", exc)

	async def _with_timeout(self, call: Awaitable[str], message: str) -> str:
		timeout = self.config.provider_timeout
		if timeout is None:
			return await call
		try:
			return await asyncio.wait_for(call, timeout)
		except asyncio.TimeoutError as exc:
			raise TimeoutError(message) from exc
