"""
실행:
  PYTHONPATH=src python -m HLT_tool.metrics --freq 1 --delay 0 --cycles 5 --out /tmp/health.json

모든 타입의 더미 샘플을 producer 스레드에서 넣고,
timer 스레드가 cycle 을 돌리는 동안 health file 에 기록되는지 확인하는 smoke run.
"""
from __future__ import annotations

import argparse
import json
import logging
import random
import threading
import time
from typing import List, Optional

from HLT_tool.metrics import MetricsRecorder, MetricType, RecorderConfig, ResultSink, SinkConfig


def produce(rec: MetricsRecorder, stop: threading.Event, interval: float) -> None:
    step = 0
    while not stop.is_set():
        step += 1
        rec.record("queue_depth", random.randint(0, 50))
        rec.record("latency_ms", random.random() * 100.0, MetricType.CONTINUOUS_MAX)
        rec.record("requests", 1, MetricType.CONTINUOUS_SUM)
        rec.record("last_step", step, MetricType.LAST)
        if step % 20 == 0:
            rec.record("blocked", step, MetricType.DISCRETE)
        stop.wait(interval)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the metrics recorder with synthetic producers.")
    parser.add_argument("--freq", type=float, default=1.0, help="cycle period in seconds (default: 1)")
    parser.add_argument("--delay", type=float, default=0.0, help="startup delay in seconds (default: 0)")
    parser.add_argument("--cycles", type=int, default=5, help="number of cycles to run (default: 5)")
    parser.add_argument("--out", default=None, help="output file (default: auto file in cache dir)")
    parser.add_argument("--mode", choices=["snapshot", "jsonl", "none"], default="snapshot")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    cfg = RecorderConfig(freq=args.freq, delay=args.delay)
    sink = ResultSink(SinkConfig(mode=args.mode, file_path=args.out, indent=2))
    rec = MetricsRecorder(cfg, sink=sink)

    stop = threading.Event()
    producer = threading.Thread(target=produce, args=(rec, stop, args.freq / 20), daemon=True)
    producer.start()

    with rec:
        while rec.cycles < args.cycles:
            time.sleep(args.freq / 4)
    stop.set()
    producer.join(timeout=1.0)

    print(json.dumps(rec.snapshot(), indent=2))
    if sink.file_path:
        print("written to:", sink.file_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
