"""The job source that feeds the pipeline."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from podscale.job import Job
from podscale.kernel import Message, Module
from podscale.stats import StatsCollector


class Scanner(Module):
    """Creates a job every ``interArrivalTime`` and sends it to ``target``."""

    def __init__(
        self,
        name: str = "scanner",
        params: Optional[Mapping[str, Any]] = None,
        target: str = "queue",
    ) -> None:
        super().__init__(name, params)
        self.target = target
        self.jobs_created = 0
        self._send_event = Message("sendJob")
        self._collector: Optional[StatsCollector] = None

    def _schedule_next(self) -> None:
        self.schedule_at(self.now + float(self.par("interArrivalTime")), self._send_event)

    def initialize(self) -> None:
        self.jobs_created = 0
        collector = self._simulation().module("statsCollector")
        if not isinstance(collector, StatsCollector):
            raise TypeError(f"module {collector.name!r} is not a StatsCollector")
        self._collector = collector
        self._schedule_next()

    def handle_message(self, message: Message) -> None:
        if message is not self._send_event:
            return
        job = Job(f"msg-{self.jobs_created}", start_time=self.now)
        self.send(job, self.target)
        self.jobs_created += 1
        self.emit("messagesCreatedCount", self.jobs_created)
        if self._collector is not None:
            self._collector.collect_generated_jobs(1)
        self._schedule_next()

    def display_text(self) -> str:
        return f"Jobs created: {self.jobs_created}"