import threading

import pytest

from hello_queue.scheduling import FixedDelayTicker


def test_ticker_keeps_running_after_a_failing_tick(caplog):
    calls = []
    done = threading.Event()

    def task():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        if len(calls) >= 3:
            done.set()

    ticker = FixedDelayTicker(task, initial_delay=0, delay=0.01)
    ticker.start()
    try:
        assert done.wait(2.0)
    finally:
        ticker.stop()

    assert len(calls) >= 3
    assert any(r.getMessage() == "Scheduled task failed" for r in caplog.records)


def test_stop_during_initial_delay_skips_all_ticks():
    calls = []
    ticker = FixedDelayTicker(lambda: calls.append(1), initial_delay=60, delay=1)
    ticker.start()
    assert ticker.running
    ticker.stop()
    assert not ticker.running
    assert calls == []
    assert ticker.ticks == 0


def test_ticks_do_not_overlap():
    active = []
    overlaps = []
    done = threading.Event()
    lock = threading.Lock()

    def task():
        with lock:
            active.append(1)
            if len(active) > 1:
                overlaps.append(1)
        threading.Event().wait(0.02)
        with lock:
            active.pop()
        if ticker.ticks >= 5:
            done.set()

    ticker = FixedDelayTicker(task, initial_delay=0, delay=0.001)
    ticker.start()
    try:
        assert done.wait(2.0)
    finally:
        ticker.stop()
    assert overlaps == []


@pytest.mark.parametrize("kwargs", [{"initial_delay": -1, "delay": 1}, {"initial_delay": 0, "delay": 0}])
def test_rejects_invalid_delays(kwargs):
    with pytest.raises(ValueError):
        FixedDelayTicker(lambda: None, **kwargs)
