import pytest
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import ProtocolError

from osmanage.exceptions import WaitTimeoutError
from osmanage.services.k8s.polling import Poller, wait_poller


def test_returns_first_snapshot_meeting_condition(make_poller, clock):
    values = iter([0, 1, 2, 3])
    seen = []

    result = make_poller(timeout=60).run(lambda: next(values), lambda v: v >= 2, on_tick=seen.append)

    assert result == 2
    assert seen == [0, 1, 2]
    assert clock.sleeps == [2.0, 2.0, 2.0]


def test_timeout_carries_last_snapshot(make_poller, clock):
    values = iter(range(100))

    with pytest.raises(WaitTimeoutError) as excinfo:
        make_poller(timeout=7).run(lambda: next(values), lambda v: False)

    # probes at t=2,4,6; the final sleep is clipped to the deadline
    assert excinfo.value.last_snapshot == 2
    assert excinfo.value.code == "TIMEOUT"
    assert clock.now == pytest.approx(7)


def test_timeout_without_any_successful_probe(make_poller):
    def probe():
        raise ApiException(status=500, reason="boom")

    with pytest.raises(WaitTimeoutError) as excinfo:
        make_poller(timeout=5).run(probe, lambda v: True)
    assert excinfo.value.last_snapshot is None


def test_transient_errors_keep_polling(make_poller):
    calls = {"n": 0}

    def probe():
        calls["n"] += 1
        if calls["n"] == 1:
            raise ApiException(status=503, reason="unavailable")
        if calls["n"] == 2:
            raise ProtocolError("connection reset")
        return "ok"

    assert make_poller().run(probe, lambda v: v == "ok") == "ok"
    assert calls["n"] == 3


def test_other_errors_propagate(make_poller):
    def probe():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        make_poller().run(probe, lambda v: True)


def test_zero_interval_still_bounded(clock):
    poller = Poller(interval=0, timeout=1, clock=clock, sleep=lambda s: setattr(clock, "now", clock.now + 0.25))

    with pytest.raises(WaitTimeoutError):
        poller.run(lambda: 0, lambda v: False)


def test_wait_poller_explicit_timeout_wins(settings, make_poller):
    supplied = make_poller(timeout=600, interval=5)

    poller = wait_poller(settings, 10, 180, "instance", supplied)

    assert poller.timeout == 10
    assert poller.interval == 5
    assert supplied.timeout == 600


def test_wait_poller_defaults(settings, make_poller):
    supplied = make_poller(timeout=600)

    assert wait_poller(settings, None, 180, "instance", supplied) is supplied
    built = wait_poller(settings, None, 180, "instance")
    assert (built.timeout, built.interval, built.description) == (180, settings.poll_interval_seconds, "instance")
    assert wait_poller(settings, 7, 180, "instance").timeout == 7
