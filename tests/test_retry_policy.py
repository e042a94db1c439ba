import pytest

from ecotravel.errors import RateLimited, TransportError
from ecotravel.llm.retry import RetryPolicy


def _flaky(failures, exc=RateLimited):
    calls = {"n": 0}

    def fn():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise exc("busy")
        return "ok"

    return fn, calls


def test_three_rate_limits_then_success():
    sleeps = []
    waits = []
    fn, calls = _flaky(3)

    result = RetryPolicy(sleep=sleeps.append).call(fn, on_wait=waits.append)

    assert result == "ok"
    assert calls["n"] == 4
    assert sleeps == [2.0, 4.0, 6.0]
    assert sleeps == sorted(set(sleeps))
    assert len(waits) == 3
    assert "(3/3)" in waits[-1]


def test_four_rate_limits_propagate():
    sleeps = []
    fn, calls = _flaky(4)

    with pytest.raises(RateLimited):
        RetryPolicy(sleep=sleeps.append).call(fn)

    assert calls["n"] == 4
    assert len(sleeps) == 3


def test_other_errors_are_not_retried():
    sleeps = []
    fn, calls = _flaky(1, exc=TransportError)

    with pytest.raises(TransportError):
        RetryPolicy(sleep=sleeps.append).call(fn)

    assert calls["n"] == 1
    assert sleeps == []


def test_arguments_are_forwarded():
    policy = RetryPolicy(sleep=lambda _: None)
    assert policy.call(lambda a, b=0: a + b, 2, b=3) == 5
    assert policy.delay_for(1) < policy.delay_for(2) < policy.delay_for(3)
