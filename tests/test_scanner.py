import pytest

from podscale.job import Job
from podscale.kernel import Message, Module, Simulation
from podscale.scanner import Scanner
from podscale.stats import StatsCollector


class _Sink(Module):
    def __init__(self, name):
        super().__init__(name)
        self.received = []

    def handle_message(self, message):
        self.received.append((self.now, message))


def _setup(inter_arrival=1.0):
    sim = Simulation()
    stats = sim.add_module(StatsCollector())
    sink = sim.add_module(_Sink("queue"))
    scanner = sim.add_module(Scanner("scanner", {"interArrivalTime": inter_arrival}))
    return sim, stats, sink, scanner


def test_jobs_are_created_at_each_interval():
    sim, _, sink, scanner = _setup(inter_arrival=1.0)
    sim.run(until=3.5)
    times = [time for time, _ in sink.received]
    assert times == [1.0, 2.0, 3.0]
    assert scanner.jobs_created == len(times)


def test_jobs_carry_name_and_start_time():
    sim, _, sink, _ = _setup(inter_arrival=2.0)
    sim.run(until=5.0)
    for index, (time, job) in enumerate(sink.received):
        assert isinstance(job, Job)
        assert job.name == f"msg-{index}"
        assert job.start_time == time


def test_generated_jobs_reach_collector_and_signal():
    sim, stats, sink, scanner = _setup(inter_arrival=1.0)
    sim.run(until=4.5)
    assert stats.generated_jobs == len(sink.received)
    counts = [value for _, value in sim.signal_values(scanner, "messagesCreatedCount")]
    assert counts == list(range(1, len(sink.received) + 1))


def test_callable_inter_arrival_is_drawn_each_time():
    gaps = iter([1.0, 3.0, 0.5, 100.0])
    sim, _, sink, _ = _setup(inter_arrival=lambda: next(gaps))
    sim.run(until=10.0)
    assert [time for time, _ in sink.received] == [1.0, 4.0, 4.5]


def test_other_messages_are_ignored():
    sim, _, sink, scanner = _setup(inter_arrival=10.0)
    sim.send(Message("noise"), scanner)
    sim.run(until=5.0)
    assert sink.received == []
    assert scanner.jobs_created == 0


def test_missing_collector_is_an_error():
    sim = Simulation()
    sim.add_module(_Sink("queue"))
    sim.add_module(Scanner("scanner", {"interArrivalTime": 1.0}))
    with pytest.raises(KeyError):
        sim.run(until=1.0)


def test_display_text_counts_jobs():
    sim, _, sink, scanner = _setup(inter_arrival=1.0)
    sim.run(until=2.5)
    assert scanner.display_text() == f"Jobs created: {len(sink.received)}"