# HLT_tool/metrics/registry.py
from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Type

from .base import Metric, MetricType
from .config import RecorderConfig
from .impl.events import DiscreteLog, LastValue
from .impl.smoothed import ContinuousMax, ContinuousSum


class MetricTypeMismatch(TypeError):
    """이미 다른 타입으로 고정된 키에 record 한 경우."""

    def __init__(self, name: str, bound: MetricType, requested: MetricType):
        super().__init__(
            f"metric {name!r} is bound to {bound.value}, ignoring {requested.value} sample"
        )
        self.name = name
        self.bound = bound
        self.requested = requested


def metric_class(kind: MetricType) -> Type[Metric]:
    if kind in (MetricType.CONTINUOUS, MetricType.CONTINUOUS_MAX):
        return ContinuousMax
    if kind is MetricType.CONTINUOUS_SUM:
        return ContinuousSum
    if kind is MetricType.DISCRETE:
        return DiscreteLog
    if kind is MetricType.LAST:
        return LastValue
    raise ValueError(f"Unknown metric type: {kind}")


def make_metric(name: str, kind: MetricType, cfg: RecorderConfig) -> Metric:
    cls = metric_class(kind)
    if cls is ContinuousMax:
        return ContinuousMax(name, cfg, kind)
    return cls(name, cfg)


class MetricRegistry:
    """
    name -> Metric 객체 딕셔너리. 타입은 첫 bind 에서 고정.
    사용 패턴:
      m = reg.bind("cpu", MetricType.CONTINUOUS)
      m.ingest(value, now)
      reg.reduce_all(); reg.clear_all()
      reg.publish_all()
    락은 MetricsRecorder 가 잡는다.
    """
    def __init__(self, cfg: RecorderConfig):
        self.cfg = cfg
        self._m: Dict[str, Metric] = {}

    def bind(self, name: str, kind: MetricType) -> Metric:
        metric = self._m.get(name)
        if metric is None:
            metric = make_metric(name, kind, self.cfg)
            self._m[name] = metric
        elif metric.kind is not kind:
            raise MetricTypeMismatch(name, metric.kind, kind)
        return metric

    def get(self, name: str) -> Metric:
        return self._m[name]

    def __getitem__(self, name: str) -> Metric:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._m

    def __len__(self) -> int:
        return len(self._m)

    def names(self) -> Iterable[str]:
        return self._m.keys()

    def items(self):
        return self._m.items()

    def types(self) -> Dict[str, MetricType]:
        return {name: m.kind for name, m in self._m.items()}

    def reduce_all(self) -> None:
        for m in self._m.values():
            m.reduce()

    def clear_all(self) -> None:
        for m in self._m.values():
            m.clear()

    def pending_all(self) -> Dict[str, Any]:
        return {name: m.pending() for name, m in self._m.items()}

    def publish_all(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name, m in self._m.items():
            if m.has_published():
                out[name] = m.publish()
        return out

    def reset(self) -> None:
        self._m.clear()

    def state_dict(self) -> Dict[str, Any]:
        return {name: m.state_dict() for name, m in self._m.items()}

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        for name, st in state.items():
            kind = MetricType.parse(st.get("kind", ""))
            if kind is None:
                raise ValueError(f"Unknown metric type in checkpoint for {name!r}: {st.get('kind')}")
            self.bind(name, kind).load_state_dict(st)
