# HLT_tool/metrics/impl/smoothed.py
from __future__ import annotations
from collections import deque
from typing import Any, Deque, List, Mapping, Optional

from ..base import Metric, MetricType
from ..config import RecorderConfig
from ..smoothing import decay_constants, smooth
from ..utils import is_finite, to_py_scalar

class _Smoothed(Metric):
    """
    published 상태 = [raw, s1, s2, s3].
    이번 cycle 에 샘플이 없으면 직전 raw 로 다시 smoothing (감쇠는 계속 진행).
    """
    def __init__(self, name: str, cfg: RecorderConfig):
        super().__init__(name, cfg)
        self.decays = decay_constants(cfg.freq)
        self._state: Optional[List[float]] = None
        self.clear()

    @staticmethod
    def coerce(value: Any) -> float:
        v = float(to_py_scalar(value))
        if not is_finite(v):
            raise ValueError(f"non-finite sample: {v}")
        return v

    def _reduced(self) -> Optional[float]:
        raise NotImplementedError

    def reduce(self) -> None:
        v = self._reduced()
        if v is None:
            if self._state is None:
                return
            v = self._state[0]
        self._state = smooth(v, self._state, self.decays)

    def publish(self) -> Optional[List[float]]:
        return list(self._state) if self._state is not None else None

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        super().load_state_dict(state)
        data = state.get("data")
        self._state = [float(x) for x in data] if data else None


class ContinuousMax(_Smoothed):
    """
    cycle 내 최대값만 남김 => smoothing.
    CONTINUOUS / CONTINUOUS_MAX 공용 (kind 는 라벨 용도로만 다름).
    """
    kind = MetricType.CONTINUOUS

    def __init__(self, name: str, cfg: RecorderConfig, kind: MetricType = MetricType.CONTINUOUS):
        super().__init__(name, cfg)
        self.kind = kind

    def ingest(self, value: float, now: float) -> None:
        if self._pending is None or value > self._pending:
            self._pending = value

    def _reduced(self) -> Optional[float]:
        return self._pending

    def clear(self) -> None:
        self._pending: Optional[float] = None

    def pending(self) -> Optional[float]:
        return self._pending


class ContinuousSum(_Smoothed):
    """
    cycle 내 샘플 합 / freq => 초당 rate 를 smoothing.
    pending 은 최근 max_buffer 개만 유지.
    """
    kind = MetricType.CONTINUOUS_SUM

    def ingest(self, value: float, now: float) -> None:
        self._pending.append(value)

    def _reduced(self) -> Optional[float]:
        if not self._pending:
            return None
        return sum(self._pending) / self.cfg.freq

    def clear(self) -> None:
        self._pending: Deque[float] = deque(maxlen=self.cfg.max_buffer)

    def pending(self) -> List[float]:
        return list(self._pending)
