import logging
import time
from typing import Optional

import psutil
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# Prometheus Metrics
STAGE_DURATION_SECONDS = Histogram(
    "stage_duration_seconds",
    "Time spent in a pipeline stage",
    ["stage"]
)

STAGE_MEMORY_USAGE_BYTES = Histogram(
    "stage_memory_usage_bytes",
    "Resident memory in bytes at the end of a pipeline stage",
    ["stage"]
)

ITEM_FAILURES_TOTAL = Counter(
    "item_failures_total",
    "Per-item failures isolated by a pipeline stage",
    ["stage"]
)


class PerformanceMonitor:
    """Helper to measure time and memory of one pipeline stage."""

    def __init__(self):
        self.start_time = 0.0
        self.end_time = 0.0
        self.start_mem = 0
        self.end_mem = 0
        self.process = psutil.Process()

    def start(self):
        self.start_time = time.perf_counter()
        self.start_mem = self.process.memory_info().rss

    def stop(self):
        self.end_time = time.perf_counter()
        self.end_mem = self.process.memory_info().rss

    @property
    def duration(self):
        return self.end_time - self.start_time

    def report(self, label: str, count: Optional[int] = None) -> str:
        count_str = f" (N={count})" if count is not None else ""
        mem_diff_mb = (self.end_mem - self.start_mem) / (1024 * 1024)
        end_mem_mb = self.end_mem / (1024 * 1024)
        msg = f"[{label}]{count_str} Time: {self.duration:.4f}s | Mem: {end_mem_mb:.1f}MB (Delta: {mem_diff_mb:+.2f}MB)"

        STAGE_DURATION_SECONDS.labels(stage=label).observe(self.duration)
        STAGE_MEMORY_USAGE_BYTES.labels(stage=label).observe(self.end_mem)

        logger.info(msg)
        return msg


def record_item_failures(stage: str, count: int) -> None:
    if count:
        ITEM_FAILURES_TOTAL.labels(stage=stage).inc(count)
