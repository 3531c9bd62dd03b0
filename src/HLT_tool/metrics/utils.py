# HLT_tool/metrics/utils.py
from __future__ import annotations
from typing import Any
import math
from pathlib import Path
import os
from datetime import datetime

import numpy as np

def to_py_scalar(x: Any) -> Any:
    """
    NumPy 스칼라/배열 등을 파이썬 기본 타입으로 변환.
    publish 된 상태가 항상 json 직렬화 가능하도록 유지.
    """
    if isinstance(x, np.ndarray):
        if x.size == 1:
            return x.reshape(-1)[0].item()
        return x.tolist()
    if isinstance(x, np.generic):
        return x.item()

    # 파이썬 기본
    if isinstance(x, (int, float, str, bool)) or x is None:
        return x

    # dict/list 재귀 변환
    if isinstance(x, dict):
        return {k: to_py_scalar(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [to_py_scalar(v) for v in x]

    return x

def is_finite(x: float) -> bool:
    return (x is not None) and (not math.isnan(x)) and (not math.isinf(x))

def env_float(name: str, default: float) -> float:
    try:
        return float(os.environ[name])
    except (KeyError, ValueError):
        return default

def env_int(name: str, default: int) -> int:
    try:
        return int(os.environ[name])
    except (KeyError, ValueError):
        return default

def env_str(name: str, default: str) -> str:
    return os.environ.get(name) or default

def get_metrics_cache_dir() -> Path:
    """
    기본: ~/.cache/HLT_tool/metrics
    환경변수 HLT_TOOL_CACHE 로 override 가능.
    """
    base = os.environ.get("HLT_TOOL_CACHE", None)

    if base is None:
        base = Path.home() / ".cache" / "HLT_tool"
    else:
        base = Path(base)

    path = base / "metrics"
    path.mkdir(parents=True, exist_ok=True)
    return path


def make_default_metrics_file(prefix: str = "metrics", suffix: str = ".json") -> str:
    """
    자동 run_id 포함 파일명 생성
    """
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    return str(get_metrics_cache_dir() / f"{prefix}_{ts}{suffix}")
