from __future__ import annotations

import asyncio

from core.scheduler import DeferredTasks


async def test_job_runs_after_delay():
    tasks = DeferredTasks()
    ran = asyncio.Event()

    async def job():
        ran.set()

    tasks.schedule("job", 0.01, job)
    assert "job" in tasks

    await asyncio.wait_for(ran.wait(), timeout=1)
    await asyncio.sleep(0)
    assert "job" not in tasks


async def test_rescheduling_replaces_previous_job():
    tasks = DeferredTasks()
    calls = []

    async def first():
        calls.append("first")

    async def second():
        calls.append("second")

    tasks.schedule("key", 0.05, first)
    tasks.schedule("key", 0.01, second)
    await asyncio.sleep(0.1)

    assert calls == ["second"]


async def test_cancel_all():
    tasks = DeferredTasks()
    calls = []

    async def job():
        calls.append(1)

    tasks.schedule("a", 10, job)
    tasks.schedule("b", 10, job)

    assert tasks.cancel_all() == 2
    assert len(tasks) == 0
    assert tasks.cancel("a") is False
    await asyncio.sleep(0)
    assert calls == []


async def test_failing_job_is_contained(caplog):
    tasks = DeferredTasks()

    async def job():
        raise RuntimeError("boom")

    task = tasks.schedule("bad", 0, job)
    await task

    assert "Deferred task bad failed" in caplog.text
    assert "bad" not in tasks
