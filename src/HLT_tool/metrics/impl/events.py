# HLT_tool/metrics/impl/events.py
from __future__ import annotations
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple

from ..base import Metric, MetricType
from ..config import RecorderConfig

_MISSING = object()

class DiscreteLog(Metric):
    """
    (timestamp, value) 이벤트 로그.
    - pending: 최근 max_buffer 개 (링 버퍼)
    - published: 최근 disc_len 개, timestamp 비감소 순서
    """
    kind = MetricType.DISCRETE

    def __init__(self, name: str, cfg: RecorderConfig):
        super().__init__(name, cfg)
        self._events: Deque[Tuple[float, Any]] = deque(maxlen=cfg.disc_len)
        self._last_ts: Optional[float] = None
        self.clear()

    def ingest(self, value: Any, now: float) -> None:
        # 시계가 뒤로 가도 순서 유지
        if self._last_ts is not None and now < self._last_ts:
            now = self._last_ts
        self._last_ts = now
        self._pending.append((now, value))

    def reduce(self) -> None:
        if self._pending:
            self._events.extend(self._pending)

    def clear(self) -> None:
        self._pending: Deque[Tuple[float, Any]] = deque(maxlen=self.cfg.max_buffer)

    def pending(self) -> List[Tuple[float, Any]]:
        return list(self._pending)

    def publish(self) -> Optional[List[List[Any]]]:
        if not self._events:
            return None
        return [[t, v] for t, v in self._events]

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        super().load_state_dict(state)
        self._events.clear()
        for t, v in state.get("data") or []:
            self._events.append((float(t), v))
        self._last_ts = self._events[-1][0] if self._events else None


class LastValue(Metric):
    """가장 최근 값만 유지 (cycle 에서 덮어씀)."""
    kind = MetricType.LAST

    def __init__(self, name: str, cfg: RecorderConfig):
        super().__init__(name, cfg)
        self._value: Any = _MISSING
        self.clear()

    def ingest(self, value: Any, now: float) -> None:
        self._pending = value

    def reduce(self) -> None:
        if self._pending is not _MISSING:
            self._value = self._pending

    def clear(self) -> None:
        self._pending: Any = _MISSING

    def pending(self) -> Any:
        return None if self._pending is _MISSING else self._pending

    def publish(self) -> Any:
        return None if self._value is _MISSING else self._value

    def has_published(self) -> bool:
        # None 도 유효한 마지막 값
        return self._value is not _MISSING

    def state_dict(self) -> Dict[str, Any]:
        state = super().state_dict()
        state["set"] = self.has_published()
        return state

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        super().load_state_dict(state)
        data = state.get("data")
        if state.get("set", data is not None):
            self._value = data
        else:
            self._value = _MISSING
