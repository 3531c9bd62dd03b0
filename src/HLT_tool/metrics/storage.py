# HLT_tool/metrics/storage.py
from __future__ import annotations
import dataclasses
from typing import Any, Dict
import json
import logging
import os
import tempfile

from .config import SinkConfig
from .utils import make_default_metrics_file

logger = logging.getLogger(__name__)

class ResultSink:
    """
    cycle 이 끝날 때 published 상태를 내보내는 정책 객체.
    write 실패는 여기서 로그로 남기고 False 반환 (recorder 상태는 그대로).
    """

    def __init__(self, cfg: SinkConfig):
        self.cfg = cfg

        if self.cfg.mode not in ("none", "snapshot", "jsonl"):
            raise ValueError(f"Unknown sink mode: {self.cfg.mode}")

        if self.cfg.mode != "none":
            if not self.cfg.file_path:
                if not self.cfg.auto_file:
                    raise ValueError("file_path required when auto_file=False")
                suffix = ".jsonl" if self.cfg.mode == "jsonl" else ".json"
                self.cfg = dataclasses.replace(
                    self.cfg,
                    file_path=make_default_metrics_file(self.cfg.file_prefix, suffix)
                )

            parent = os.path.dirname(self.cfg.file_path)
            if parent:
                os.makedirs(parent, exist_ok=True)

    @property
    def file_path(self):
        return self.cfg.file_path

    def write(self, data: Dict[str, Any], cycle: int = 0, now: float = 0.0) -> bool:
        if self.cfg.mode == "none":
            return True
        try:
            if self.cfg.mode == "snapshot":
                self._write_snapshot(data)
            else:
                row = {"cycle": cycle, "time": now, "data": data}
                with open(self.cfg.file_path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(row, ensure_ascii=False) + "\n")
        except (OSError, TypeError, ValueError):
            logger.exception("failed to write metrics to %s", self.cfg.file_path)
            return False
        logger.debug("wrote %d metrics to %s", len(data), self.cfg.file_path)
        return True

    def _write_snapshot(self, data: Dict[str, Any]) -> None:
        # 읽는 쪽이 반쯤 쓰인 파일을 보지 않도록 temp 파일 후 교체
        payload = json.dumps(data, ensure_ascii=False, indent=self.cfg.indent)
        directory = os.path.dirname(self.cfg.file_path) or "."
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=".metrics-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.cfg.file_path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def read(self) -> Any:
        """snapshot: 마지막 상태 dict, jsonl: 행 list, none: None."""
        if self.cfg.mode == "none" or not os.path.exists(self.cfg.file_path):
            return None
        with open(self.cfg.file_path, "r", encoding="utf-8") as f:
            if self.cfg.mode == "snapshot":
                return json.load(f)
            return [json.loads(line) for line in f if line.strip()]
