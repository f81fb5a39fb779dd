from __future__ import annotations
import asyncio
import logging
from typing import Any, Coroutine, Dict, List

logger = logging.getLogger(__name__)


class TaskRegistry:
	"""Keeps track of detached background tasks by key.

	Holding a reference prevents the event loop from garbage-collecting
	running tasks; finished tasks remove themselves.
	"""

	def __init__(self) -> None:
		self._tasks: Dict[str, asyncio.Task] = {}

	def spawn(self, key: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
		if key in self._tasks and not self._tasks[key].done():
			coro.close()
			raise RuntimeError(f"task {key!r} is already running")
		task = asyncio.create_task(coro, name=f"lesson-{key}")
		self._tasks[key] = task
		task.add_done_callback(lambda t, k=key: self._on_done(k, t))
		return task

	def _on_done(self, key: str, task: asyncio.Task) -> None:
		if self._tasks.get(key) is task:
			del self._tasks[key]
		if task.cancelled():
			logger.info("background task %s cancelled", key)
			return
		exc = task.exception()
		if exc is not None:
			logger.error("background task %s crashed", key, exc_info=exc)

	def running(self) -> List[str]:
		return [k for k, t in self._tasks.items() if not t.done()]

	def cancel(self, key: str) -> bool:
		task = self._tasks.get(key)
		if task is None or task.done():
			return False
		return task.cancel()

	async def wait(self, key: str) -> None:
		task = self._tasks.get(key)
		if task is None:
			return
		await asyncio.gather(task, return_exceptions=True)

	async def shutdown(self) -> None:
		tasks = list(self._tasks.values())
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)
		self._tasks.clear()
