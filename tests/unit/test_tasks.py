"""
Unit tests for the background task registry.
"""
import asyncio
import logging

import pytest

from lessongen.tasks import TaskRegistry


async def _sleep_then(value, delay=0.01):
	await asyncio.sleep(delay)
	return value


async def _crash():
	raise RuntimeError("kaboom")


class TestTaskRegistry:
	@pytest.mark.asyncio
	async def test_finished_tasks_are_dropped(self):
		registry = TaskRegistry()
		task = registry.spawn("a", _sleep_then(42))
		assert registry.running() == ["a"]
		await registry.wait("a")
		assert task.result() == 42
		assert registry.running() == []

	@pytest.mark.asyncio
	async def test_duplicate_key_rejected(self):
		registry = TaskRegistry()
		registry.spawn("a", _sleep_then(1, delay=1))
		with pytest.raises(RuntimeError):
			registry.spawn("a", _sleep_then(2))
		await registry.shutdown()

	@pytest.mark.asyncio
	async def test_cancel(self):
		registry = TaskRegistry()
		task = registry.spawn("a", _sleep_then(1, delay=10))
		await asyncio.sleep(0)
		assert registry.cancel("a") is True
		await registry.wait("a")
		assert task.cancelled()
		assert registry.cancel("a") is False
		assert registry.cancel("missing") is False

	@pytest.mark.asyncio
	async def test_crash_is_logged(self, caplog):
		registry = TaskRegistry()
		with caplog.at_level(logging.ERROR, logger="lessongen.tasks"):
			registry.spawn("boom", _crash())
			await registry.wait("boom")
			await asyncio.sleep(0)
		assert "background task boom crashed" in caplog.text
		assert registry.running() == []

	@pytest.mark.asyncio
	async def test_shutdown_cancels_everything(self):
		registry = TaskRegistry()
		tasks = [registry.spawn(str(i), _sleep_then(i, delay=10)) for i in range(3)]
		await registry.shutdown()
		assert all(t.cancelled() for t in tasks)
		assert registry.running() == []

	@pytest.mark.asyncio
	async def test_wait_for_unknown_key(self):
		await TaskRegistry().wait("nothing")
