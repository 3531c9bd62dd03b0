# HLT_tool/metrics/config.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional

from .utils import env_float, env_int, env_str

SinkMode = Literal["none", "snapshot", "jsonl"]

@dataclass(frozen=True)
class RecorderConfig:
    """
    Recorder 동작 상수 (모두 override 가능):
      - freq: reduction cycle 주기(초)
      - delay: 첫 cycle 전 대기 시간(초), producer warm-up 용
      - disc_len: DISCRETE 키가 publish 하는 최근 이벤트 개수
      - max_buffer: SUM/DISCRETE pending 버퍼 최대 길이 (오래된 것부터 버림)
      - heartbeat_key: 매 cycle 마다 현재 시각을 찍는 LAST 키
    """
    freq: float = 5.0
    delay: float = 5.0
    disc_len: int = 5
    max_buffer: int = 1000
    heartbeat_key: str = "heartbeat"

    def __post_init__(self) -> None:
        if self.freq <= 0:
            raise ValueError(f"freq must be positive, got {self.freq}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.disc_len < 1:
            raise ValueError(f"disc_len must be >= 1, got {self.disc_len}")
        if self.max_buffer < 1:
            raise ValueError(f"max_buffer must be >= 1, got {self.max_buffer}")

    @classmethod
    def from_env(cls, prefix: str = "HLT_TOOL_") -> "RecorderConfig":
        """
        환경변수로 override:
          HLT_TOOL_FREQ=1 HLT_TOOL_DISC_LEN=10 python -m HLT_tool.metrics
        파싱 실패 시 기본값 사용.
        """
        d = cls()
        return cls(
            freq=env_float(prefix + "FREQ", d.freq),
            delay=env_float(prefix + "DELAY", d.delay),
            disc_len=env_int(prefix + "DISC_LEN", d.disc_len),
            max_buffer=env_int(prefix + "MAX_BUFFER", d.max_buffer),
            heartbeat_key=env_str(prefix + "HEARTBEAT_KEY", d.heartbeat_key),
        )


@dataclass(frozen=True)
class SinkConfig:
    """
    publish 된 상태를 내보내는 방식:
      - none: 내보내지 않음 (메모리에서 snapshot()으로만 조회)
      - snapshot: 매 cycle 전체 상태로 파일을 덮어씀 (health file)
      - jsonl: 매 cycle 한 줄씩 append
    """
    mode: SinkMode = "none"
    file_path: Optional[str] = None  # snapshot/jsonl 모드에서 사용
    auto_file: bool = True
    file_prefix: str = "metrics"
    indent: Optional[int] = None     # snapshot 모드 json indent
