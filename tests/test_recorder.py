import threading
import time

import numpy as np
import pytest

from HLT_tool.metrics import MetricsRecorder, MetricType, RecorderConfig


def test_continuous_scenario_reduces_to_cycle_max(rec):
    rec.record("cpu", 10, MetricType.CONTINUOUS)
    rec.record("cpu", 30, MetricType.CONTINUOUS)
    out = rec.cycle()
    raw, s1, s2, s3 = out["cpu"]
    assert raw == 30
    assert s1 == pytest.approx(30)
    assert (s2, s3) == pytest.approx((30, 30))


def test_sum_scenario_reduces_to_rate(rec):
    rec.record("reqs", 5, MetricType.CONTINUOUS_SUM)
    rec.record("reqs", 15, MetricType.CONTINUOUS_SUM)
    out = rec.cycle()
    assert out["reqs"][0] == pytest.approx(4.0)


def test_default_type_is_continuous(rec):
    rec.record("depth", 3)
    assert rec.types()["depth"] is MetricType.CONTINUOUS


def test_string_type_tags_are_accepted(rec):
    rec.record("lat", 12.5, "continuous_max")
    rec.record("phase", "ready", "LAST")
    assert rec.types()["lat"] is MetricType.CONTINUOUS_MAX
    assert rec.types()["phase"] is MetricType.LAST


def test_type_mismatch_is_reported_and_ignored(rec, messages):
    rec.record("cpu", 1)
    rec.record("cpu", 99, MetricType.LAST)
    assert len(messages) == 1
    assert "cpu" in messages[0]
    assert rec.types()["cpu"] is MetricType.CONTINUOUS
    assert rec.pending()["cpu"] == 1.0
    rec.cycle()
    rec.record("cpu", 5, MetricType.DISCRETE)
    assert rec.pending()["cpu"] is None
    assert rec.snapshot()["cpu"][0] == 1.0


def test_unknown_type_is_reported_and_ignored(rec, messages):
    rec.record("cpu", 1, "histogram")
    assert "cpu" not in rec.types()
    assert "histogram" in messages[0]


@pytest.mark.parametrize("bad", ["lots", 10 ** 400])
def test_bad_value_does_not_bind_key(rec, messages, bad):
    rec.record("cpu", bad)
    assert "cpu" not in rec.types()
    assert len(messages) == 1
    assert "cpu" in messages[0]


def test_numpy_values_are_published_as_python_floats(rec):
    rec.record("gpu", np.float32(2.5))
    rec.record("gpu", np.array([1.0]))
    raw = rec.cycle()["gpu"][0]
    assert raw == 2.5
    assert type(raw) is float


def test_pending_buffers_are_empty_after_cycle(rec):
    rec.record("a", 1)
    rec.record("b", 1, MetricType.CONTINUOUS_MAX)
    rec.record("c", 1, MetricType.CONTINUOUS_SUM)
    rec.record("d", 1, MetricType.DISCRETE)
    rec.record("e", 1, MetricType.LAST)
    rec.cycle()
    pending = rec.pending()
    assert pending == {"a": None, "b": None, "c": [], "d": [], "e": None, "heartbeat": None}


def test_heartbeat_is_stamped_every_cycle(rec, clock):
    rec.cycle()
    assert rec.snapshot() == {"heartbeat": clock.t}
    clock.advance(5)
    assert rec.cycle()["heartbeat"] == clock.t
    assert rec.types()["heartbeat"] is MetricType.LAST
    assert rec.cycles == 2


def test_heartbeat_key_bound_to_other_type_is_skipped(rec, messages):
    rec.record("heartbeat", 1.0)
    out = rec.cycle()
    assert out["heartbeat"][0] == 1.0
    assert any("heartbeat" in m for m in messages)


def test_discrete_keeps_most_recent_events(rec, clock):
    for i in range(6):
        clock.advance(5)
        rec.record("blocked", i, MetricType.DISCRETE)
        rec.cycle()
    events = rec.snapshot()["blocked"]
    assert len(events) == 5
    assert [v for _, v in events] == [1, 2, 3, 4, 5]
    stamps = [t for t, _ in events]
    assert stamps == sorted(stamps)
    assert stamps[-1] == clock.t


def test_idle_continuous_key_keeps_publishing(rec):
    rec.record("cpu", 8)
    rec.cycle()
    rec.cycle()
    assert rec.snapshot()["cpu"][0] == 8.0


def test_state_dict_restores_published_state(rec, clock):
    rec.record("cpu", 4)
    rec.record("blocked", "x", MetricType.DISCRETE)
    rec.record("phase", "run", MetricType.LAST)
    rec.cycle()
    state = rec.state_dict()

    other = MetricsRecorder(RecorderConfig(freq=5, delay=0), clock=clock)
    other.load_state_dict(state)
    assert other.snapshot() == rec.snapshot()
    assert other.types() == rec.types()
    assert other.cycles == 1


def test_reset_drops_everything(rec):
    rec.record("cpu", 1)
    rec.cycle()
    rec.reset()
    assert rec.snapshot() == {}
    assert rec.cycles == 0


def test_timer_thread_runs_cycles_until_stopped():
    rec = MetricsRecorder(RecorderConfig(freq=0.02, delay=0))
    rec.record("cpu", 1)
    with rec:
        deadline = time.monotonic() + 2.0
        while rec.cycles < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert rec.running
    assert rec.cycles >= 3
    assert not rec.running
    done = rec.cycles
    time.sleep(0.05)
    assert rec.cycles == done


def test_stop_during_startup_delay_runs_no_cycle():
    rec = MetricsRecorder(RecorderConfig(freq=1, delay=10))
    rec.start()
    rec.stop(timeout=1.0)
    assert rec.cycles == 0
    assert not rec.running


def test_last_key_overwritten_with_none_stays_visible(rec):
    rec.record("job", "build", MetricType.LAST)
    rec.cycle()
    rec.record("job", None, MetricType.LAST)
    out = rec.cycle()
    assert "job" in out
    assert out["job"] is None


class SlowSink:
    def __init__(self, delay: float):
        self.delay = delay
        self.entered = threading.Event()
        self.cycles = []

    def write(self, data, cycle=0, now=0.0):
        self.entered.set()
        self.cycles.append(cycle)
        time.sleep(self.delay)
        return True


def _recorder_threads():
    return [t for t in threading.enumerate() if t.name == "metrics-recorder"]


def test_restart_after_timed_out_stop_keeps_a_single_timer():
    sink = SlowSink(0.3)
    rec = MetricsRecorder(RecorderConfig(freq=0.01, delay=0), sink=sink)
    rec.start()
    assert sink.entered.wait(2.0)
    rec.stop(timeout=0.01)
    assert rec.running
    rec.start()
    try:
        assert len(_recorder_threads()) == 1
    finally:
        rec.stop()
    assert not rec.running
    assert _recorder_threads() == []


def test_concurrent_producers_lose_no_events():
    rec = MetricsRecorder(RecorderConfig(freq=5, delay=0, disc_len=10000, max_buffer=10000))
    producers, per_thread = 4, 250
    start = threading.Barrier(producers + 1)

    def produce(tid):
        start.wait()
        for i in range(per_thread):
            rec.record("events", tid * 1000 + i, MetricType.DISCRETE)

    threads = [threading.Thread(target=produce, args=(tid,)) for tid in range(producers)]
    for t in threads:
        t.start()
    start.wait()
    while any(t.is_alive() for t in threads):
        rec.cycle()
    for t in threads:
        t.join()
    rec.cycle()

    events = rec.snapshot()["events"]
    values = [v for _, v in events]
    assert len(values) == producers * per_thread
    assert sorted(values) == sorted(tid * 1000 + i for tid in range(producers) for i in range(per_thread))
    stamps = [t for t, _ in events]
    assert stamps == sorted(stamps)
    for tid in range(producers):
        own = [v for v in values if v // 1000 == tid]
        assert own == sorted(own)
    assert rec.pending()["events"] == []


def test_racing_cycles_never_write_an_older_snapshot():
    sink = SlowSink(0.001)
    rec = MetricsRecorder(RecorderConfig(freq=5, delay=0), sink=sink)

    def spin():
        for _ in range(50):
            rec.record("cpu", 1)
            rec.cycle()

    threads = [threading.Thread(target=spin) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert rec.cycles == 150
    assert sink.cycles == sorted(set(sink.cycles))
    assert sink.cycles[-1] == 150
