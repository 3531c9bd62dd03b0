# HLT_tool/metrics/base.py
from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .config import RecorderConfig
from .utils import to_py_scalar

class MetricType(str, Enum):
    """
    키별 metric 타입 (첫 record 시 고정, 이후 변경 불가).
      - LAST: 가장 최근 값만 유지
      - DISCRETE: (timestamp, value) 이벤트 로그 (최근 disc_len 개)
      - CONTINUOUS / CONTINUOUS_MAX: cycle 내 최대값을 smoothing
      - CONTINUOUS_SUM: cycle 내 합 / freq => 초당 rate 를 smoothing
    """
    LAST = "last"
    DISCRETE = "discrete"
    CONTINUOUS = "continuous"
    CONTINUOUS_MAX = "continuous_max"
    CONTINUOUS_SUM = "continuous_sum"

    @classmethod
    def parse(cls, kind: Union["MetricType", str]) -> Optional["MetricType"]:
        """모르는 타입이면 None."""
        if isinstance(kind, cls):
            return kind
        try:
            return cls(str(kind).lower())
        except ValueError:
            return None


class Metric(ABC):
    """
    키 하나의 pending 버퍼 + published 상태.
    - ingest(value, now): cycle 사이에 샘플 누적 (O(1))
    - reduce(): pending -> published 반영
    - clear(): pending 비우기 (매 cycle 마지막에 호출)
    - publish(): 현재 published 값 (없으면 None)
    - has_published(): publish 할 값이 있는지
    - state_dict()/load_state_dict(): 체크포인트 지원
    """
    kind: MetricType

    def __init__(self, name: str, cfg: RecorderConfig):
        self.name = name
        self.cfg = cfg

    @staticmethod
    def coerce(value: Any) -> Any:
        """record 전에 값 검증/변환. 받을 수 없는 값이면 ValueError/TypeError."""
        return to_py_scalar(value)

    @abstractmethod
    def ingest(self, value: Any, now: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def reduce(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def pending(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def publish(self) -> Any:
        raise NotImplementedError

    def has_published(self) -> bool:
        return self.publish() is not None

    def state_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind.value, "data": self.publish()}

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        # 기본 구현: name만
        if "name" in state:
            self.name = str(state["name"])
