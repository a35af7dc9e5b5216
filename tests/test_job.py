from podscale.job import Job
from podscale.kernel import Module, Simulation


class _Sink(Module):
    def __init__(self):
        super().__init__("sink")
        self.received = []

    def handle_message(self, message):
        self.received.append(message)


def test_defaults_are_zero():
    job = Job("msg-0")
    assert job.name == "msg-0"
    assert job.kind == 0
    assert job.total_queueing_time == 0.0
    assert job.start_time == 0.0
    assert job.queue_arrival_time == 0.0


def test_job_is_delivered_as_a_message():
    sim = Simulation()
    sink = sim.add_module(_Sink())
    job = Job("msg-1", start_time=0.5)
    sim.schedule_at(2.5, sink, job)
    sim.run()
    assert sink.received == [job]
    assert job.arrival_time == 2.5
    assert job.start_time == 0.5


def test_dup_copies_all_fields():
    job = Job("msg-3", kind=2, total_queueing_time=1.25, start_time=4.0, queue_arrival_time=6.5)
    copy = job.dup()
    assert copy is not job
    assert (copy.name, copy.kind) == ("msg-3", 2)
    assert copy.total_queueing_time == 1.25
    assert copy.start_time == 4.0
    assert copy.queue_arrival_time == 6.5


def test_dup_is_independent():
    job = Job("j", start_time=1.0)
    copy = job.dup()
    copy.start_time = 9.0
    copy.queue_arrival_time = 3.0
    assert job.start_time == 1.0
    assert job.queue_arrival_time == 0.0


def test_jobs_compare_by_identity():
    a = Job("same")
    b = Job("same")
    assert a != b
    assert a == a
    assert len({a, b}) == 2