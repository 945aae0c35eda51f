import asyncio

from rfhealth.services.task_queue import BackgroundTaskQueue


async def test_runs_submitted_work():
    queue = BackgroundTaskQueue()
    done = []

    async def work(n):
        await asyncio.sleep(0)
        done.append(n)

    for n in range(3):
        queue.submit(work(n))
    assert queue.pending == 3

    assert await queue.drain(timeout=1)
    assert sorted(done) == [0, 1, 2]
    assert queue.pending == 0


async def test_failures_are_logged_not_raised(caplog):
    queue = BackgroundTaskQueue()

    async def boom():
        raise RuntimeError("kaboom")

    queue.submit(boom(), name="webhook-up")
    assert await queue.drain(timeout=1)
    assert "Background task webhook-up failed: kaboom" in caplog.text


async def test_drain_cancels_stragglers():
    queue = BackgroundTaskQueue()
    queue.submit(asyncio.sleep(30))

    assert not await queue.drain(timeout=0.01)
    assert queue.pending == 0


async def test_drain_with_nothing_pending():
    assert await BackgroundTaskQueue().drain()
