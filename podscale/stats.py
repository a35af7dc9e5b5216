"""System-wide statistics collection."""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from podscale.kernel import Module


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.copysign(math.inf, numerator)
    return numerator / denominator


class StatsCollector(Module):
    """Aggregates job counts and latencies reported by the other modules."""

    def __init__(self, name: str = "statsCollector", params: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(name, params)
        self._reset()

    def _reset(self) -> None:
        self.completed_jobs = 0
        self.generated_jobs = 0
        self.completed_orch_work = 0
        self.dropped_jobs = 0
        self.dropped_vs_generated = 0.0
        self.dropped_vs_completed = 0.0

    def initialize(self) -> None:
        self._reset()

    def collect_job_latency(self, latency: float) -> None:
        self.emit("JobLatency", latency)

    def collect_completed_jobs(self, count: int) -> None:
        self.completed_jobs += count
        self.emit("CompletedJobs", self.completed_jobs)

    def collect_generated_jobs(self, count: int) -> None:
        self.generated_jobs += count
        self.emit("GeneratedJobs", self.generated_jobs)

    def collect_completed_orch_work(self, count: int) -> None:
        self.completed_orch_work += count
        self.emit("CompletedOrchJobs", self.completed_orch_work)

    def collect_dropped_jobs(self, dropped: int) -> None:
        self.dropped_jobs += dropped
        self.emit("DroppedJobs", dropped)

    def finish(self) -> None:
        """Record the dropped-to-generated and dropped-to-completed ratios."""
        self.dropped_vs_generated = _ratio(self.dropped_jobs, self.generated_jobs)
        self.dropped_vs_completed = _ratio(self.dropped_jobs, self.completed_jobs)
        self.record_scalar("droppedGeneratedRatio", self.dropped_vs_generated)
        self.record_scalar("droppedCompletedRatio", self.dropped_vs_completed)