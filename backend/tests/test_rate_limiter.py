import pytest

from rfhealth.services.rate_limiter import RateLimiter


def test_admits_up_to_limit_then_rejects(clock):
    limiter = RateLimiter(2, 1.0, clock=clock)

    assert limiter.admit("10.0.0.1")
    assert limiter.admit("10.0.0.1")
    assert not limiter.admit("10.0.0.1")

    clock.advance(1.01)
    assert limiter.admit("10.0.0.1")


def test_identities_are_independent(clock):
    limiter = RateLimiter(1, 60, clock=clock)

    assert limiter.admit("a")
    assert not limiter.admit("a")
    assert limiter.admit("b")


def test_sliding_window_frees_slots_one_by_one(clock):
    limiter = RateLimiter(2, 10, clock=clock)
    limiter.admit("a")
    clock.advance(5)
    limiter.admit("a")
    assert limiter.remaining("a") == 0

    clock.advance(5.5)  # first request leaves the window
    assert limiter.remaining("a") == 1
    assert limiter.admit("a")
    assert not limiter.admit("a")


def test_remaining_for_unknown_identity(clock):
    limiter = RateLimiter(5, 60, clock=clock)
    assert limiter.remaining("nobody") == 5
    assert len(limiter) == 0


def test_rejected_requests_do_not_consume_quota(clock):
    limiter = RateLimiter(1, 10, clock=clock)
    limiter.admit("a")
    for _ in range(5):
        assert not limiter.admit("a")
    clock.advance(10.5)
    assert limiter.remaining("a") == 1


def test_sweep_removes_idle_identities(clock):
    limiter = RateLimiter(3, 60, clock=clock)
    limiter.admit("old")
    clock.advance(30)
    limiter.admit("recent")

    clock.advance(45)
    assert limiter.sweep() == 1
    assert len(limiter) == 1
    assert limiter.remaining("recent") == 2


def test_check_reports_quota(clock):
    limiter = RateLimiter(2, 60, clock=clock)

    first = limiter.check("a")
    assert first.allowed and first.remaining == 1 and first.limit == 2
    limiter.check("a")
    rejected = limiter.check("a")
    assert not rejected.allowed
    assert rejected.remaining == 0
    assert rejected.retry_after == 60
    assert set(rejected.headers()) == {"X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"}


def test_dispose_clears_state(clock):
    limiter = RateLimiter(1, 60, clock=clock)
    limiter.admit("a")
    limiter.dispose()
    assert len(limiter) == 0
    assert limiter.admit("a")


@pytest.mark.parametrize("max_requests, window", [(0, 60), (10, 0)])
def test_invalid_configuration(max_requests, window):
    with pytest.raises(ValueError):
        RateLimiter(max_requests, window)
