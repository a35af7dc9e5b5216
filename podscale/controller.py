"""Autoscaling controller that enables and disables worker pods."""

from __future__ import annotations

import enum
import math
from typing import Any, Callable, Mapping, Optional, Sequence

from podscale.jobqueue import JobQueue
from podscale.kernel import Message, Module
from podscale.worker import DISABLE_UNIT, ENABLE_UNIT


class ControlFunction(enum.Enum):
    """Scaling policy used by the controller."""

    LINEAR = "Linear"
    QDTE = "QDTE"


def average_samples(samples: Sequence[int]) -> int:
    """Integer mean of ``samples``, truncated; 0 for an empty sequence."""
    if not samples:
        return 0
    return sum(samples) // len(samples)


def _cdiv(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _drain_time(length: int, pods: int, rate: float) -> float:
    denominator = pods * rate
    if denominator == 0:
        return math.nan if length == 0 else math.inf
    return length / denominator


class Controller(Module):
    """Samples both queues periodically and scales orchestrators and catalogs."""

    def __init__(
        self,
        name: str = "controller",
        params: Optional[Mapping[str, Any]] = None,
        orchs: Sequence[str] = (),
        catalogs: Sequence[str] = (),
        queue1: str = "queue",
        queue2: str = "queue2",
    ) -> None:
        super().__init__(name, params)
        self.orchs = list(orchs)
        self.catalogs = list(catalogs)
        self.queue1 = queue1
        self.queue2 = queue2
        self.control_function: Optional[ControlFunction] = None
        self.current_orchs = 0
        self.current_catalogs = 0
        self.min_orchs = 0
        self.min_catalogs = 0
        self.control_messages_sent = 0
        self._poll = Message("Survey System")
        self._q1_samples: list[int] = []
        self._q2_samples: list[int] = []
        self._counter = 0
        self._reduction_threshold = 0
        self._stability_orch = 0
        self._stability_catalog = 0

    @property
    def max_orchs(self) -> int:
        return len(self.orchs)

    @property
    def max_catalogs(self) -> int:
        return len(self.catalogs)

    def initialize(self) -> None:
        self.current_orchs = int(self.par("numOrchs"))
        self.current_catalogs = int(self.par("numcatalogs"))
        self.min_orchs = int(self.par("numMinOrchs"))
        self.min_catalogs = int(self.par("numMinCatalog"))
        name = str(self.par("controlFuncUsed"))
        try:
            self.control_function = ControlFunction(name)
        except ValueError:
            raise ValueError(f"unknown control function {name!r}") from None
        self.control_messages_sent = 0

        if self.control_function is ControlFunction.QDTE:
            self._service_rate_orch = float(self.par("orchServiceRate"))
            self._service_rate_catalog = float(self.par("catalogServiceRate"))
            self._stability_threshold = int(self.par("stabilityThreshold"))
            self._latency_target_q1 = float(self.par("latencyTargetQueue1"))
            self._latency_target_q2 = float(self.par("latencyTargetQueue2"))
            self._increase_q1 = int(self.par("increaseRateQueue1"))
            self._increase_q2 = int(self.par("increaseRateQueue2"))
            self._stability_orch = 0
            self._stability_catalog = 0
        else:
            history1 = int(self.par("queue1SamplingHistory"))
            history2 = int(self.par("queue2SamplingHistory"))
            if history1 < 1 or history2 < 1:
                raise ValueError("sampling history must hold at least one sample")
            self._full_throttle = int(self.par("queueFullThrottle"))
            if self._full_throttle == 0:
                raise ValueError("queueFullThrottle must not be zero")
            self._q1_samples = [int((self.min_orchs + self.max_orchs) / 2)] * history1
            self._q2_samples = [int((self.min_catalogs + self.max_catalogs) / 2)] * history2
            self._counter = 0
            self._reduction_threshold = max(history1, history2)

        self.disable_orchs(self.min_orchs, self.max_orchs)
        self.disable_catalogs(self.min_catalogs, self.max_catalogs)
        self.emit("orchPodsNum", self.current_orchs)
        self.emit("catalogPodsNum", self.current_catalogs)
        self.schedule_at(self.now + float(self.par("SamplingFreq")), self._poll)

    def handle_message(self, message: Message) -> None:
        if message is not self._poll:
            return
        if self.control_function is ControlFunction.LINEAR:
            self._linear_step()
        elif self.control_function is ControlFunction.QDTE:
            self._qdte_step()
        self.emit("orchPodsNum", self.current_orchs)
        self.emit("catalogPodsNum", self.current_catalogs)
        self.schedule_at(self.now + float(self.par("SamplingFreq")), self._poll)

    def _linear_step(self) -> None:
        self._q2_samples[self._counter % len(self._q2_samples)] = self.queue2_length()
        self._q1_samples[self._counter % len(self._q1_samples)] = self.queue1_length()
        avg1 = average_samples(self._q1_samples)
        avg2 = average_samples(self._q2_samples)
        self.apply_scaling_orch(avg1)
        self.apply_scaling_catalogs(avg2)
        self._counter += 1

    def _qdte_step(self) -> None:
        drain1 = _drain_time(self.queue1_length(), self.current_orchs, self._service_rate_orch)
        if drain1 > self._latency_target_q1:
            self.enable_orchs(
                self.current_orchs,
                min(self.current_orchs + self._increase_q1, self.max_orchs),
            )
            self._stability_orch = 0
        elif drain1 <= self._latency_target_q1 and self._stability_orch >= self._stability_threshold:
            self.disable_orchs(max(self.min_orchs, self.current_orchs - 1), self.current_orchs)
            self._stability_orch += 1
        else:
            self._stability_orch += 1

        drain2 = _drain_time(self.queue2_length(), self.current_catalogs, self._service_rate_catalog)
        if drain2 > self._latency_target_q2:
            self.enable_catalogs(
                self.current_catalogs,
                min(self.current_catalogs + self._increase_q2, self.max_catalogs),
            )
            self._stability_catalog = 0
        elif drain2 <= self._latency_target_q2 and self._stability_catalog >= self._stability_threshold:
            self.disable_catalogs(
                max(self.min_catalogs, self.current_catalogs - 1), self.current_catalogs
            )
            self._stability_catalog += 1
        else:
            self._stability_catalog += 1

    def _queue(self, name: str) -> JobQueue:
        queue = self._simulation().module(name)
        if not isinstance(queue, JobQueue):
            raise TypeError(f"module {queue.name!r} is not a job queue")
        return queue

    def queue1_length(self) -> int:
        return len(self._queue(self.queue1))

    def queue2_length(self) -> int:
        return len(self._queue(self.queue2))

    def _scale(
        self,
        samples: list[int],
        average: int,
        current: int,
        minimum: int,
        maximum: int,
        enable: Callable[[int, int], None],
        disable: Callable[[int, int], None],
    ) -> None:
        if not samples:
            raise RuntimeError("linear control is not configured")
        latest = samples[self._counter % len(samples)]
        desired = min(_cdiv(latest * (maximum - minimum), self._full_throttle) + minimum, maximum)
        if desired > current:
            enable(current, desired)
        elif self._counter >= self._reduction_threshold:
            avg_desired = _cdiv(average * (maximum - minimum), self._full_throttle) + minimum
            if desired <= avg_desired < current:
                disable(avg_desired, current)

    def apply_scaling_orch(self, average_sample: int) -> None:
        """Scale orchestrators from the latest and the averaged queue-1 samples."""
        self._scale(
            self._q1_samples,
            average_sample,
            self.current_orchs,
            self.min_orchs,
            self.max_orchs,
            self.enable_orchs,
            self.disable_orchs,
        )

    def apply_scaling_catalogs(self, average_sample: int) -> None:
        """Scale catalogs from the latest and the averaged queue-2 samples."""
        self._scale(
            self._q2_samples,
            average_sample,
            self.current_catalogs,
            self.min_catalogs,
            self.max_catalogs,
            self.enable_catalogs,
            self.disable_catalogs,
        )

    def _switch(self, targets: list[str], start: int, stop: int, command: str) -> int:
        if start < stop and (start < 0 or stop > len(targets)):
            raise IndexError(f"pods {start}..{stop} are out of range (0..{len(targets)})")
        for name in targets[start:stop]:
            self.send(Message(command), name)
            self.control_messages_sent += 1
        count = stop - start
        self.emit("ControlMessagesSent", count)
        return count

    def disable_orchs(self, start: int, stop: int) -> None:
        self.current_orchs -= self._switch(self.orchs, start, stop, DISABLE_UNIT)

    def enable_orchs(self, start: int, stop: int) -> None:
        self.current_orchs += self._switch(self.orchs, start, stop, ENABLE_UNIT)

    def disable_catalogs(self, start: int, stop: int) -> None:
        self.current_catalogs -= self._switch(self.catalogs, start, stop, DISABLE_UNIT)

    def enable_catalogs(self, start: int, stop: int) -> None:
        self.current_catalogs += self._switch(self.catalogs, start, stop, ENABLE_UNIT)