# HLT_tool/metrics/manager.py
from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, Union
import dataclasses
import logging
import threading
import time

from .base import MetricType
from .config import RecorderConfig
from .registry import MetricRegistry, MetricTypeMismatch, metric_class
from .storage import ResultSink
from .utils import to_py_scalar

logger = logging.getLogger(__name__)

class MetricsRecorder:
    """
    - producer 는 record(key, value, kind) 를 아무 스레드에서나 호출 (O(1))
    - cycle() 이 pending 버퍼를 published 상태로 reduce 하고 버퍼를 비움
    - start() 하면 전용 timer 스레드가 delay 후 freq 초마다 cycle() 실행
    - sink 가 있으면 매 cycle 의 snapshot 을 넘김
    사용 예:
      rec = MetricsRecorder(RecorderConfig(freq=5))
      rec.record("queue_depth", 12)
      rec.record("requests", 1, MetricType.CONTINUOUS_SUM)
      rec.cycle()
      rec.snapshot()  # {"queue_depth": [12.0, ...], "requests": [0.2, ...], "heartbeat": ...}
    """
    def __init__(
        self,
        cfg: Optional[RecorderConfig] = None,
        sink: Optional[ResultSink] = None,
        diagnose: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cfg = cfg or RecorderConfig()
        self.registry = MetricRegistry(self.cfg)
        self.sink = sink
        self.diagnose = diagnose or logger.warning
        self.clock = clock
        self.cycles = 0
        self._lock = threading.Lock()
        self._sink_lock = threading.Lock()
        self._last_written = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def record(self, key: str, value: Any, kind: Union[MetricType, str] = MetricType.CONTINUOUS) -> None:
        mtype = MetricType.parse(kind)
        if mtype is None:
            self.diagnose(f"unknown metric type {kind!r} for {key!r}, sample ignored")
            return
        try:
            value = metric_class(mtype).coerce(value)
        except (TypeError, ValueError, OverflowError) as e:
            self.diagnose(f"bad value {value!r} for {mtype.value} metric {key!r}: {e}")
            return
        now = self.clock()
        with self._lock:
            try:
                metric = self.registry.bind(key, mtype)
            except MetricTypeMismatch as e:
                self.diagnose(str(e))
                return
            metric.ingest(value, now)

    def cycle(self) -> Dict[str, Any]:
        """
        한 번의 reduction:
          heartbeat 기록 -> 모든 키 reduce -> pending 비움 -> snapshot 을 sink 로
        """
        start = time.monotonic()
        now = self.clock()
        with self._lock:
            try:
                self.registry.bind(self.cfg.heartbeat_key, MetricType.LAST).ingest(now, now)
            except MetricTypeMismatch as e:
                self.diagnose(f"heartbeat skipped: {e}")
            self.registry.reduce_all()
            self.registry.clear_all()
            self.cycles += 1
            cycle = self.cycles
            out = to_py_scalar(self.registry.publish_all())
        logger.debug("cycle %d reduced %d metrics in %.4fs", cycle, len(out), time.monotonic() - start)
        if self.sink is not None:
            # 동시에 돈 cycle 이 더 최신 snapshot 을 덮어쓰지 않도록
            with self._sink_lock:
                if cycle > self._last_written:
                    self._last_written = cycle
                    self.sink.write(out, cycle=cycle, now=now)
        return out

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return to_py_scalar(self.registry.publish_all())

    def pending(self) -> Dict[str, Any]:
        with self._lock:
            return to_py_scalar(self.registry.pending_all())

    def types(self) -> Dict[str, MetricType]:
        with self._lock:
            return self.registry.types()

    def reset(self) -> None:
        with self._lock:
            self.registry.reset()
            self.cycles = 0
        with self._sink_lock:
            self._last_written = 0

    # -------------------------------------------------
    # timer 스레드
    # -------------------------------------------------
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            if not self._stop.is_set():
                return
            # stop(timeout) 이 시간 초과된 이전 스레드: 끝날 때까지 기다림
            self._thread.join()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="metrics-recorder", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None

    def __enter__(self) -> "MetricsRecorder":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _run(self) -> None:
        if self._stop.wait(self.cfg.delay):
            return
        deadline = time.monotonic()
        while not self._stop.is_set():
            try:
                self.cycle()
            except Exception:
                logger.exception("metrics cycle %d failed", self.cycles + 1)
            # 고정 deadline 기준이라 cycle 시간이 누적되지 않음
            deadline += self.cfg.freq
            wait = deadline - time.monotonic()
            if wait < 0:
                logger.warning("metrics cycle overran period by %.3fs", -wait)
                deadline = time.monotonic()
                wait = 0
            if self._stop.wait(wait):
                return

    # -------------------------------------------------
    # 체크포인트
    # -------------------------------------------------
    def state_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "cycles": self.cycles,
                "cfg": dataclasses.asdict(self.cfg),
                "metrics": to_py_scalar(self.registry.state_dict()),
            }

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        # pending 버퍼는 복원하지 않음
        with self._lock:
            self.cycles = int(state.get("cycles", 0))
            if "metrics" in state:
                self.registry.load_state_dict(state["metrics"])
