import pytest

from config.config import RateLimitSettings
from server.rate_limit import SlidingWindowRateLimiter, WindowLimit

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_allows_up_to_limit_then_reports_retry_after(clock):
    limiter = SlidingWindowRateLimiter({"generation": WindowLimit(2, 60.0)}, clock=clock)

    assert limiter.check("generation", "client-a") is None
    clock.now += 10
    assert limiter.check("generation", "client-a") is None
    clock.now += 10

    assert limiter.check("generation", "client-a") == pytest.approx(40.0)


def test_window_slides(clock):
    limiter = SlidingWindowRateLimiter({"search": WindowLimit(1, 60.0)}, clock=clock)

    assert limiter.check("search", "client-a") is None
    assert limiter.check("search", "client-a") is not None
    clock.now += 60
    assert limiter.check("search", "client-a") is None


def test_clients_and_groups_are_counted_separately(clock):
    limiter = SlidingWindowRateLimiter(
        {"search": WindowLimit(1, 60.0), "scrape": WindowLimit(1, 60.0)}, clock=clock
    )

    assert limiter.check("search", "client-a") is None
    assert limiter.check("search", "client-b") is None
    assert limiter.check("scrape", "client-a") is None
    assert limiter.check("search", "client-a") is not None


def test_unknown_group_is_unlimited(clock):
    limiter = SlidingWindowRateLimiter({}, clock=clock)
    for _ in range(100):
        assert limiter.check("anything", "client-a") is None


def test_from_settings_builds_the_three_groups():
    limiter = SlidingWindowRateLimiter.from_settings(
        RateLimitSettings(generation_per_minute=1, search_per_hour=1, scrape_per_hour=1)
    )
    for group in ("generation", "search", "scrape"):
        assert limiter.check(group, "c") is None
        assert limiter.check(group, "c") is not None

    limiter.reset()
    assert limiter.check("generation", "c") is None


def test_idle_clients_are_forgotten(clock):
    limiter = SlidingWindowRateLimiter(
        {"generation": WindowLimit(5, 60.0)}, clock=clock, sweep_interval_s=60.0
    )
    for n in range(50):
        assert limiter.check("generation", f"client-{n}") is None
    assert limiter.tracked_clients == 50

    clock.now += 61
    assert limiter.check("generation", "client-new") is None

    assert limiter.tracked_clients == 1


def test_sweep_keeps_clients_still_inside_their_window(clock):
    limiter = SlidingWindowRateLimiter(
        {"generation": WindowLimit(1, 60.0), "search": WindowLimit(1, 3600.0)},
        clock=clock,
        sweep_interval_s=60.0,
    )
    limiter.check("generation", "client-a")
    limiter.check("search", "client-a")

    clock.now += 120
    limiter.check("generation", "client-b")

    assert limiter.tracked_clients == 2
    assert limiter.check("search", "client-a") is not None
