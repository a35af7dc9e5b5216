"""Worker pods that pull jobs from a queue and process them."""

from __future__ import annotations

import enum
from collections import deque
from typing import Any, Mapping, Optional

from podscale.job import Job
from podscale.jobqueue import JobQueue
from podscale.kernel import Message, Module
from podscale.stats import StatsCollector

END_PROCESSING = "end processing-"
POLL_QUEUE = "poll queue-"
ENABLE_UNIT = "enable unit-"
DISABLE_UNIT = "disable unit-"

KIND_END_PROCESSING = 1
KIND_POLL_QUEUE = 2


class UnitStatus(enum.Enum):
    """State of a worker, valued by the colour it is shown in."""

    IDLE = "darkgreen"
    BUSY = "darkorange"
    DISABLED = "darkred"


class Worker(Module):
    """A pod that polls its input queue, processes jobs and can be switched on and off."""

    def __init__(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        input_queue: str = "queue",
    ) -> None:
        super().__init__(name, params)
        self.input_queue = input_queue
        self.active = True
        self.jobs_finished = 0
        self._in_progress: deque[Job] = deque()
        self._message_count = 0
        self._queue: Optional[JobQueue] = None
        self._collector: Optional[StatsCollector] = None

    @property
    def in_progress(self) -> int:
        """Number of jobs being processed."""
        return len(self._in_progress)

    def initialize(self) -> None:
        self.active = True
        self.jobs_finished = 0
        self._message_count = 0
        sim = self._simulation()
        queue = sim.module(self.input_queue)
        if not isinstance(queue, JobQueue):
            raise TypeError(f"module {queue.name!r} is not a job queue")
        self._queue = queue
        collector = sim.module("statsCollector")
        if not isinstance(collector, StatsCollector):
            raise TypeError(f"module {collector.name!r} is not a StatsCollector")
        self._collector = collector
        self.schedule_at(self.now, Message(f"{POLL_QUEUE}{self._message_count}"))
        self._message_count += 1

    def _complete(self, job: Job) -> None:
        """Dispose of a job whose processing has ended."""

    def handle_message(self, message: Message) -> None:
        self.emit("UnitUptime", self.active)
        name = message.name
        if name.startswith(END_PROCESSING):
            finished = self._in_progress.popleft()
            self.jobs_finished += 1
            self._complete(finished)
            if self.active:
                self.request_work()
        elif name.startswith(POLL_QUEUE):
            if self.active:
                self.request_work()
        elif name.startswith(ENABLE_UNIT):
            self.active = True
            self.emit("UnitUptime", self.active)
            if not self._in_progress:
                self.request_work()
        elif name.startswith(DISABLE_UNIT):
            self.active = False
            self.emit("UnitUptime", self.active)

    def request_work(self) -> Optional[Job]:
        """Take a job from the input queue, or schedule another poll if it is empty."""
        if self._queue is None:
            raise RuntimeError(f"worker {self.name!r} has not been initialized")
        job = self._queue.pop_job()
        if job is not None:
            self._in_progress.append(job)
            done = Message(f"{END_PROCESSING}{self._message_count}", kind=KIND_END_PROCESSING)
            self._message_count += 1
            self.schedule_at(self.now + float(self.par("TimeToConsume")), done)
        else:
            poll = Message(f"{POLL_QUEUE}{self._message_count}", kind=KIND_POLL_QUEUE)
            self.schedule_at(self.now + float(self.par("TimeToWaitIfQueueIsEmpty")), poll)
        return job

    def status(self) -> UnitStatus:
        if not self.active:
            return UnitStatus.DISABLED
        return UnitStatus.BUSY if self._in_progress else UnitStatus.IDLE

    def display_text(self) -> str:
        return f"  Jobs processed:{self.jobs_finished}"


class Orchestrator(Worker):
    """Processes jobs from the first queue and forwards them to the next one."""

    def __init__(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        input_queue: str = "queue",
        output: str = "queue2",
    ) -> None:
        super().__init__(name, params, input_queue)
        self.output = output

    def _complete(self, job: Job) -> None:
        if self._collector is not None:
            self._collector.collect_completed_orch_work(1)
        self.send(job, self.output)


class Catalog(Worker):
    """Processes jobs from the second queue and retires them, recording their latency."""

    def __init__(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        input_queue: str = "queue2",
    ) -> None:
        super().__init__(name, params, input_queue)

    def _complete(self, job: Job) -> None:
        if self._collector is not None:
            self._collector.collect_completed_jobs(1)
            self._collector.collect_job_latency(self.now - job.start_time)