import pytest

from delivery_routing.services.throttle import TokenBucket, unthrottled


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_passes_and_next_waits_one_interval():
    clock = FakeClock()
    bucket = TokenBucket.from_interval(0.5, clock=clock, sleep=clock.sleep)

    assert bucket.acquire() == 0.0
    assert bucket.acquire() == pytest.approx(0.5)
    assert clock.sleeps == [pytest.approx(0.5)]


def test_elapsed_time_refills_bucket():
    clock = FakeClock()
    bucket = TokenBucket.from_interval(0.5, clock=clock, sleep=clock.sleep)

    bucket.acquire()
    clock.now += 2.0

    assert bucket.acquire() == 0.0
    assert clock.sleeps == []


def test_burst_capacity():
    clock = FakeClock()
    bucket = TokenBucket(rate_per_second=2.0, capacity=3.0, clock=clock, sleep=clock.sleep)

    waits = [bucket.acquire() for _ in range(4)]

    assert waits[:3] == [0.0, 0.0, 0.0]
    assert waits[3] == pytest.approx(0.5)


def test_zero_interval_disables_throttling():
    bucket = TokenBucket.from_interval(0.0)

    assert not bucket.enabled
    assert all(bucket.acquire() == 0.0 for _ in range(100))
    assert not unthrottled().enabled


def test_invalid_requests():
    with pytest.raises(ValueError):
        TokenBucket(1.0, capacity=0)
    with pytest.raises(ValueError):
        TokenBucket(1.0, capacity=1.0).acquire(tokens=2.0)
