from rfhealth.services.rate_limiter import RateLimiter
from rfhealth.services.scheduler import SchedulerService


async def test_start_and_stop():
    scheduler = SchedulerService(RateLimiter(10, 60), sweep_interval_seconds=300)

    scheduler.start()
    assert scheduler.running
    assert scheduler.scheduler.get_job("sweep_rate_limiter") is not None

    scheduler.stop()
    assert not scheduler.running


async def test_sweep_job_evicts_idle_callers(clock):
    limiter = RateLimiter(10, 60, clock=clock)
    limiter.admit("192.0.2.1")
    clock.advance(61)

    await SchedulerService(limiter)._sweep_rate_limiter()
    assert len(limiter) == 0
