"""The job message that travels through the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace

from podscale.kernel import Message


@dataclass(eq=False)
class Job(Message):
    """A unit of work with its creation and queue-arrival times."""

    total_queueing_time: float = 0.0
    start_time: float = 0.0
    queue_arrival_time: float = 0.0

    def dup(self) -> "Job":
        """Return an independent copy of this job."""
        return replace(self)