# HLT_tool/metrics/__init__.py
from .config import RecorderConfig, SinkConfig
from .base import Metric, MetricType
from .registry import MetricRegistry, MetricTypeMismatch
from .manager import MetricsRecorder
from .storage import ResultSink
from .smoothing import decay_constants, smooth

from .impl.smoothed import ContinuousMax, ContinuousSum
from .impl.events import DiscreteLog, LastValue

__all__ = [
    "RecorderConfig",
    "SinkConfig",
    "Metric",
    "MetricType",
    "MetricRegistry",
    "MetricTypeMismatch",
    "MetricsRecorder",
    "ResultSink",
    "decay_constants",
    "smooth",
    "ContinuousMax",
    "ContinuousSum",
    "DiscreteLog",
    "LastValue",
]
