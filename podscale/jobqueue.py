"""A capacity-limited queue that services jobs before handing them out."""

from __future__ import annotations

from collections import deque
from typing import Any, Mapping, Optional

from podscale.job import Job
from podscale.kernel import Message, Module
from podscale.stats import StatsCollector


class JobQueue(Module):
    """Accepts jobs, services them one at a time and keeps them ready for pickup.

    Jobs beyond ``capacity`` (counting waiting and ready jobs) are dropped;
    a negative capacity means the queue is unbounded.
    """

    def __init__(self, name: str = "queue", params: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(name, params)
        self.capacity = -1
        self._waiting: deque[Job] = deque()
        self._ready: deque[Job] = deque()
        self._in_service: Optional[Job] = None
        self._end_service = Message("endService")
        self._collector: Optional[StatsCollector] = None

    @property
    def in_service(self) -> Optional[Job]:
        """The job currently being serviced, if any."""
        return self._in_service

    @property
    def waiting(self) -> int:
        """Number of jobs waiting to be serviced."""
        return len(self._waiting)

    def initialize(self) -> None:
        self.capacity = int(self.par("capacity"))
        collector = self._simulation().module("statsCollector")
        if not isinstance(collector, StatsCollector):
            raise TypeError(f"module {collector.name!r} is not a StatsCollector")
        self._collector = collector

    def _service_time(self) -> float:
        return float(self.par("serviceTime"))

    def _start_service(self, job: Job) -> None:
        self._in_service = job
        self.schedule_at(self.now + self._service_time(), self._end_service)

    def _finish_service(self, job: Job) -> None:
        self._ready.append(job)
        self.emit("queueLength", len(self._ready))

    def handle_message(self, message: Message) -> None:
        if message is self._end_service:
            if self._in_service is not None:
                self._finish_service(self._in_service)
            if self._waiting:
                self._start_service(self._waiting.popleft())
            else:
                self._in_service = None
            return

        if not isinstance(message, Job):
            raise TypeError(f"{self.name} received {message.name!r}, which is not a job")
        message.queue_arrival_time = self.now
        total = len(self._waiting) + len(self._ready)
        if 0 <= self.capacity <= total:
            self.emit("dropped", 1)
            if self._collector is not None:
                self._collector.collect_dropped_jobs(1)
        elif self._in_service is None:
            self._start_service(message)
        else:
            self._waiting.append(message)

    def pop_job(self) -> Optional[Job]:
        """Take the oldest ready job, or return None when none is ready."""
        if not self._ready:
            return None
        job = self._ready.popleft()
        self.emit("queueLatency", self.now - job.queue_arrival_time)
        self.emit("queueLength", len(self._ready))
        return job

    def __len__(self) -> int:
        return len(self._ready)

    def display_text(self) -> str:
        return f"Jobs in queue: {len(self._ready)}"