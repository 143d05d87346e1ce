import pytest

from mlq_sim.models import Process
from mlq_sim.queues import DEFAULT_QUEUES, QueueConfig, QueuePolicy, ReadyQueue


def _proc(label="P", burst=3, arrival=0, level=1, priority=1):
    return Process(label, burst_time=burst, arrival_time=arrival, queue_level=level, priority=priority)


def test_tick_stops_at_zero():
    p = _proc(burst=2)
    assert p.remaining_time == 2
    p.tick()
    p.tick()
    assert p.is_finished()
    p.tick()
    assert p.remaining_time == 0


def test_record_first_run_latches_once():
    p = _proc(arrival=2)
    p.record_first_run(5)
    p.record_first_run(9)
    assert p.has_run
    assert p.response_time == 3


def test_finalize_computes_metrics():
    p = _proc(burst=4, arrival=1)
    p.finalize(10)
    assert p.completion_time == 10
    assert p.turnaround_time == 9
    assert p.waiting_time == 5


def test_fresh_copy_resets_state():
    p = _proc(burst=2)
    p.tick()
    p.record_first_run(0)
    copy = p.fresh_copy()
    assert copy.remaining_time == 2
    assert not copy.has_run
    assert (copy.label, copy.burst_time, copy.queue_level) == (p.label, p.burst_time, p.queue_level)


def test_round_robin_queue_is_fifo():
    q = ReadyQueue(DEFAULT_QUEUES[0])
    for label, prio in [("A", 1), ("B", 9), ("C", 5)]:
        q.push(_proc(label, priority=prio))
    assert q.labels() == ["A", "B", "C"]
    assert q.pop().label == "A"
    q.push(_proc("A"))
    assert [q.pop().label for _ in range(3)] == ["B", "C", "A"]


def test_priority_queue_orders_descending_and_stable():
    q = ReadyQueue(DEFAULT_QUEUES[2])
    for label, prio in [("A", 1), ("B", 5), ("C", 3), ("D", 5), ("E", 3)]:
        q.push(_proc(label, level=3, priority=prio))
    assert [q.pop().label for _ in range(5)] == ["B", "D", "C", "E", "A"]


def test_peek_does_not_remove():
    q = ReadyQueue(QueueConfig(level=2, policy=QueuePolicy.ROUND_ROBIN, quantum=3))
    assert q.peek() is None
    assert not q
    q.push(_proc("A", level=2))
    assert q.peek().label == "A"
    assert q.peek().label == "A"
    assert len(q) == 1


def test_pop_empty_raises():
    q = ReadyQueue(DEFAULT_QUEUES[1])
    with pytest.raises(IndexError):
        q.pop()
