"""Periodic capture trigger that re-arms only after the previous tick finishes."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


class CaptureScheduler:
	"""Fire `on_tick` every `interval` seconds while running.

	The next sleep starts only after `on_tick` returns, so a slow provider can
	never have more than one outstanding request from this scheduler.
	"""

	def __init__(self, on_tick: TickCallback, interval: float = 2.0, sleep: SleepFn = asyncio.sleep) -> None:
		if interval <= 0:
			raise ValueError("Capture interval must be positive.")
		self.on_tick = on_tick
		self.interval = interval
		self._sleep = sleep
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	def start(self) -> None:
		"""Arm the scheduler; calling it while already running is a no-op."""
		if self.running:
			return
		self._task = asyncio.create_task(self._loop())

	def stop(self) -> None:
		"""Disarm the scheduler and drop any pending tick.

		A tick that is already executing is shielded and runs to completion.
		"""
		task, self._task = self._task, None
		if task is not None and not task.done():
			task.cancel()

	async def _loop(self) -> None:
		while True:
			await self._sleep(self.interval)
			try:
				await asyncio.shield(self.on_tick())
			except asyncio.CancelledError:
				raise
			except Exception as exc:
				LOGGER.error("Capture tick failed: %s", exc)
