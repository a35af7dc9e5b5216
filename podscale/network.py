"""Assembly of the scanner, queue, worker and controller pipeline, and its command line."""

from __future__ import annotations

import argparse
import random
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from podscale.controller import ControlFunction, Controller
from podscale.jobqueue import JobQueue
from podscale.kernel import Simulation
from podscale.scanner import Scanner
from podscale.stats import StatsCollector
from podscale.worker import Catalog, Orchestrator, Worker


@dataclass
class SystemConfig:
    """Parameters of the whole pipeline."""

    scanners: int = 1
    inter_arrival_time: float = 1.0
    exponential_arrivals: bool = False
    seed: Optional[int] = None
    queue_capacity: int = -1
    queue_service_time: float = 0.0
    orchestrators: int = 4
    catalogs: int = 4
    orch_time_to_consume: float = 2.0
    catalog_time_to_consume: float = 2.0
    poll_interval: float = 0.1
    control_function: Optional[str] = "Linear"
    min_orchs: int = 1
    min_catalogs: int = 1
    sampling_freq: float = 1.0
    queue_full_throttle: int = 80
    queue1_sampling_history: int = 5
    queue2_sampling_history: int = 5
    orch_service_rate: float = 1.0
    catalog_service_rate: float = 1.0
    stability_threshold: int = 5
    latency_target_queue1: float = 1.0
    latency_target_queue2: float = 1.0
    increase_rate_queue1: int = 1
    increase_rate_queue2: int = 1

    def __post_init__(self) -> None:
        if self.scanners < 1:
            raise ValueError("at least one scanner is needed")
        if self.orchestrators < 1 or self.catalogs < 1:
            raise ValueError("at least one orchestrator and one catalog are needed")
        if self.inter_arrival_time <= 0:
            raise ValueError("inter_arrival_time must be positive")
        if self.poll_interval <= 0 or self.sampling_freq <= 0:
            raise ValueError("poll_interval and sampling_freq must be positive")
        if min(self.queue_service_time, self.orch_time_to_consume, self.catalog_time_to_consume) < 0:
            raise ValueError("service and consume times must not be negative")
        if not 0 <= self.min_orchs <= self.orchestrators:
            raise ValueError("min_orchs must lie between 0 and orchestrators")
        if not 0 <= self.min_catalogs <= self.catalogs:
            raise ValueError("min_catalogs must lie between 0 and catalogs")
        if self.control_function is not None:
            ControlFunction(self.control_function)
            if self.queue1_sampling_history < 1 or self.queue2_sampling_history < 1:
                raise ValueError("sampling histories must hold at least one sample")
            if self.queue_full_throttle <= 0:
                raise ValueError("queue_full_throttle must be positive")


@dataclass
class System:
    """A built pipeline ready to run."""

    config: SystemConfig
    sim: Simulation
    stats: StatsCollector
    queue: JobQueue
    queue2: JobQueue
    scanners: list[Scanner] = field(default_factory=list)
    orchestrators: list[Orchestrator] = field(default_factory=list)
    catalogs: list[Catalog] = field(default_factory=list)
    controller: Optional[Controller] = None

    def run(self, until: float) -> int:
        """Run the simulation up to ``until``; returns the number of events processed."""
        return self.sim.run(until)

    def summary(self) -> dict[str, Any]:
        """Counters and ratios describing the run so far."""

        def active(workers: Sequence[Worker]) -> int:
            return sum(worker.active for worker in workers)

        return {
            "time": self.sim.now,
            "generated": self.stats.generated_jobs,
            "orch_work": self.stats.completed_orch_work,
            "completed": self.stats.completed_jobs,
            "dropped": self.stats.dropped_jobs,
            "dropped_vs_generated": self.stats.dropped_vs_generated,
            "dropped_vs_completed": self.stats.dropped_vs_completed,
            "queue_length": len(self.queue),
            "queue2_length": len(self.queue2),
            "active_orchestrators": active(self.orchestrators),
            "active_catalogs": active(self.catalogs),
            "control_messages": self.controller.control_messages_sent if self.controller else 0,
        }


def build_system(config: Optional[SystemConfig] = None) -> System:
    """Create and wire every module described by ``config``."""
    config = config or SystemConfig()
    sim = Simulation()
    stats = sim.add_module(StatsCollector())
    queue_params = {"capacity": config.queue_capacity, "serviceTime": config.queue_service_time}
    queue = sim.add_module(JobQueue("queue", queue_params))
    queue2 = sim.add_module(JobQueue("queue2", queue_params))

    rng = random.Random(config.seed)
    if config.exponential_arrivals:
        rate = 1.0 / config.inter_arrival_time
        arrival: Any = lambda: rng.expovariate(rate)
    else:
        arrival = config.inter_arrival_time

    scanners = [
        sim.add_module(Scanner(f"scanner[{i}]", {"interArrivalTime": arrival}, target="queue"))
        for i in range(config.scanners)
    ]
    orchestrators = [
        sim.add_module(
            Orchestrator(
                f"orch[{i}]",
                {
                    "TimeToConsume": config.orch_time_to_consume,
                    "TimeToWaitIfQueueIsEmpty": config.poll_interval,
                },
                input_queue="queue",
                output="queue2",
            )
        )
        for i in range(config.orchestrators)
    ]
    catalogs = [
        sim.add_module(
            Catalog(
                f"catalog[{i}]",
                {
                    "TimeToConsume": config.catalog_time_to_consume,
                    "TimeToWaitIfQueueIsEmpty": config.poll_interval,
                },
                input_queue="queue2",
            )
        )
        for i in range(config.catalogs)
    ]

    controller = None
    if config.control_function is not None:
        params = {
            "numOrchs": config.orchestrators,
            "numcatalogs": config.catalogs,
            "numMinOrchs": config.min_orchs,
            "numMinCatalog": config.min_catalogs,
            "controlFuncUsed": config.control_function,
            "SamplingFreq": config.sampling_freq,
            "queue1SamplingHistory": config.queue1_sampling_history,
            "queue2SamplingHistory": config.queue2_sampling_history,
            "queueFullThrottle": config.queue_full_throttle,
            "orchServiceRate": config.orch_service_rate,
            "catalogServiceRate": config.catalog_service_rate,
            "stabilityThreshold": config.stability_threshold,
            "latencyTargetQueue1": config.latency_target_queue1,
            "latencyTargetQueue2": config.latency_target_queue2,
            "increaseRateQueue1": config.increase_rate_queue1,
            "increaseRateQueue2": config.increase_rate_queue2,
        }
        controller = sim.add_module(
            Controller(
                "controller",
                params,
                orchs=[o.name for o in orchestrators],
                catalogs=[c.name for c in catalogs],
            )
        )

    return System(config, sim, stats, queue, queue2, scanners, orchestrators, catalogs, controller)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pipeline from the command line and print a summary."""
    parser = argparse.ArgumentParser(description="Simulate an autoscaled job pipeline.")
    parser.add_argument("--until", type=float, default=100.0, help="simulation end time")
    parser.add_argument("--scanners", type=int, default=1)
    parser.add_argument("--inter-arrival", type=float, default=1.0)
    parser.add_argument("--exponential", action="store_true", help="draw exponential inter-arrival times")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--capacity", type=int, default=-1, help="queue capacity, negative for unbounded")
    parser.add_argument("--orchestrators", type=int, default=4)
    parser.add_argument("--catalogs", type=int, default=4)
    parser.add_argument("--min-orchs", type=int, default=1)
    parser.add_argument("--min-catalogs", type=int, default=1)
    parser.add_argument("--orch-time", type=float, default=2.0)
    parser.add_argument("--catalog-time", type=float, default=2.0)
    parser.add_argument("--sampling-freq", type=float, default=1.0)
    parser.add_argument("--control", choices=["Linear", "QDTE", "none"], default="Linear")
    args = parser.parse_args(argv)

    try:
        config = SystemConfig(
            scanners=args.scanners,
            inter_arrival_time=args.inter_arrival,
            exponential_arrivals=args.exponential,
            seed=args.seed,
            queue_capacity=args.capacity,
            orchestrators=args.orchestrators,
            catalogs=args.catalogs,
            min_orchs=args.min_orchs,
            min_catalogs=args.min_catalogs,
            orch_time_to_consume=args.orch_time,
            catalog_time_to_consume=args.catalog_time,
            sampling_freq=args.sampling_freq,
            control_function=None if args.control == "none" else args.control,
        )
    except ValueError as error:
        parser.error(str(error))

    system = build_system(config)
    system.run(args.until)
    for key, value in system.summary().items():
        print(f"{key}: {value}")
    return 0