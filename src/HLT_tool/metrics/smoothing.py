# HLT_tool/metrics/smoothing.py
from __future__ import annotations
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple
import math

# load average 처럼 1/5/15 세 horizon
HORIZONS: Tuple[int, ...] = (1, 5, 15)

@lru_cache(maxsize=None)
def decay_constants(freq: float) -> Tuple[float, ...]:
    """
    freq 초 주기에서 1분 load average 와 비슷하게 감쇠하는 상수 d 와
    그 5제곱, 15제곱:
      d = 1 - exp(-freq / 60)
      => (d, d**5, d**15)
    """
    d = 1.0 - math.exp(-freq / 60.0)
    return tuple(d ** h for h in HORIZONS)


def smooth(value: float, state: Optional[Sequence[float]], decays: Sequence[float]) -> List[float]:
    """
    4-slot 상태 [raw, s1, s2, s3] 갱신.
      raw' = v
      s_i' = decay_i * v + (1 - decay_i) * s_i   (s_i 가 없으면 v)
    s + decay * (v - s) 형태로 계산: decay 가 1e-17 수준이어도 s == v 면 정확히 유지.
    state 를 수정하지 않고 새 list 반환.
    """
    v = float(value)
    prev = list(state) if state else []
    out = [v]
    for i, decay in enumerate(decays, start=1):
        s = prev[i] if i < len(prev) else v
        out.append(s + decay * (v - s))
    return out
