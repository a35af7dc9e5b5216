import pytest

from podscale.job import Job
from podscale.jobqueue import JobQueue
from podscale.kernel import Message, Simulation
from podscale.stats import StatsCollector
from podscale.worker import Catalog, Orchestrator, UnitStatus

QUEUE_PARAMS = {"capacity": -1, "serviceTime": 0.0}


def _setup(worker_cls=Orchestrator, consume=2.0, wait=1.0):
    sim = Simulation()
    stats = sim.add_module(StatsCollector())
    q1 = sim.add_module(JobQueue("queue", QUEUE_PARAMS))
    q2 = sim.add_module(JobQueue("queue2", QUEUE_PARAMS))
    worker = sim.add_module(
        worker_cls("pod", {"TimeToConsume": consume, "TimeToWaitIfQueueIsEmpty": wait})
    )
    return sim, stats, q1, q2, worker


def test_orchestrator_forwards_job_to_next_queue():
    sim, stats, q1, q2, orch = _setup()
    sim.send(Job("a"), "queue")
    sim.run(until=10.0)
    assert orch.jobs_finished == 1
    assert stats.completed_orch_work == 1
    assert len(q1) == 0
    assert q2.pop_job().name == "a"


def test_worker_is_busy_while_processing():
    sim, _, _, _, orch = _setup(consume=5.0)
    sim.send(Job("a"), "queue")
    sim.run(until=2.0)
    assert orch.status() is UnitStatus.BUSY
    assert orch.in_progress == 1
    assert orch.jobs_finished == 0
    sim.run(until=20.0)
    assert orch.status() is UnitStatus.IDLE
    assert orch.jobs_finished == 1


def test_catalog_retires_jobs_and_records_latency():
    sim, stats, _, q2, catalog = _setup(worker_cls=Catalog)
    sim.send(Job("a", start_time=0.0), "queue2")
    sim.run(until=10.0)
    assert stats.completed_jobs == 1
    assert len(q2) == 0
    latencies = sim.signal_values(stats, "JobLatency")
    assert len(latencies) == 1
    time, latency = latencies[0]
    assert latency == time


def test_disabled_worker_takes_no_jobs_until_enabled():
    sim, _, q1, q2, orch = _setup()
    sim.send(Message("disable unit-"), orch)
    sim.send(Job("a"), "queue")
    sim.run(until=10.0)
    assert orch.status() is UnitStatus.DISABLED
    assert len(q1) == 1
    assert orch.jobs_finished == 0

    sim.send(Message("enable unit-"), orch)
    sim.run(until=20.0)
    assert orch.status() is UnitStatus.IDLE
    assert orch.jobs_finished == 1
    assert len(q1) == 0
    assert len(q2) == 1


def test_uptime_signal_tracks_state_changes():
    sim, _, _, _, orch = _setup()
    sim.send(Message("disable unit-"), orch)
    sim.run(until=3.0)
    values = [value for _, value in sim.signal_values(orch, "UnitUptime")]
    assert values[0] is True
    assert values[-1] is False


def test_unknown_messages_change_nothing():
    sim, _, _, _, orch = _setup()
    sim.send(Message("something else"), orch)
    sim.run(until=3.0)
    assert orch.status() is UnitStatus.IDLE
    assert orch.jobs_finished == 0


def test_jobs_are_processed_in_order():
    sim, _, _, q2, orch = _setup(consume=1.0)
    jobs = [Job(f"msg-{i}") for i in range(4)]
    for job in jobs:
        sim.send(job, "queue")
    sim.run(until=50.0)
    assert orch.jobs_finished == len(jobs)
    assert [q2.pop_job() for _ in jobs] == jobs


def test_request_work_returns_job_or_none():
    sim, _, q1, _, orch = _setup()
    sim.run(until=1.0)
    assert orch.request_work() is None
    job = Job("a")
    sim.send(job, "queue")
    sim.step()
    sim.step()
    assert len(q1) == 1
    assert orch.request_work() is job
    assert orch.in_progress == 1


def test_missing_input_queue_is_an_error():
    sim = Simulation()
    sim.add_module(StatsCollector())
    sim.add_module(Orchestrator("pod", {"TimeToConsume": 1.0, "TimeToWaitIfQueueIsEmpty": 1.0}))
    with pytest.raises(KeyError):
        sim.run(until=1.0)


def test_display_text_counts_finished_jobs():
    sim, _, _, _, orch = _setup()
    sim.send(Job("a"), "queue")
    sim.run(until=10.0)
    assert orch.display_text() == f"  Jobs processed:{orch.jobs_finished}"
    assert UnitStatus.IDLE.value == "darkgreen"
    assert UnitStatus.DISABLED.value == "darkred"