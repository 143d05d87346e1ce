from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .metrics import compute_system_metrics
from .models import Process, ScheduledSlice, ScheduleResult
from .queues import DEFAULT_QUEUES, QueueConfig, QueuePolicy, ReadyQueue

logger = logging.getLogger(__name__)


def _validate_queues(queues: Sequence[QueueConfig]) -> None:
    levels = sorted(q.level for q in queues)
    if levels != [1, 2, 3]:
        raise ValueError(f"MLQ needs exactly queue levels 1, 2 and 3, got {levels}")
    for q in queues:
        if q.policy is QueuePolicy.ROUND_ROBIN and (q.quantum is None or q.quantum <= 0):
            raise ValueError(f"Round-robin queue Q{q.level} requires a positive quantum")
        if q.quantum is not None and q.quantum <= 0:
            raise ValueError(f"Queue Q{q.level} quantum must be positive, got {q.quantum}")


class MLQScheduler:
    """
    Multilevel Queue scheduler driven one tick at a time.

    Queue levels are strictly ordered: a ready process in Q1 always beats
    anything in Q2 or Q3, and takes the CPU away from a lower-level
    occupant at the start of the tick it becomes ready. Within a level the
    queue's own policy decides (FIFO round-robin or descending priority).

    Each loop iteration runs, in order: arrivals, preemption check,
    dispatch, first-run latch, execution, completion/requeue check, clock
    advance.
    """

    def __init__(self, processes: Sequence[Process], queues: Sequence[QueueConfig] = DEFAULT_QUEUES) -> None:
        _validate_queues(queues)

        self._queues: Dict[int, ReadyQueue] = {q.level: ReadyQueue(q) for q in queues}
        self._levels: List[int] = sorted(self._queues)

        for p in processes:
            if p.queue_level not in self._queues:
                raise ValueError(f"Process {p.label!r} has unknown queue level {p.queue_level}")

        self._processes: List[Process] = list(processes)
        self._finished: List[Process] = []

        self.clock = 0
        self._running: Optional[Process] = None
        self._remaining_quantum: Optional[int] = None

        self.trace: List[Tuple[int, str]] = []
        self.timeline: List[ScheduledSlice] = []

    @property
    def running(self) -> Optional[Process]:
        return self._running

    def queue(self, level: int) -> ReadyQueue:
        return self._queues[level]

    def simulate(self) -> List[Process]:
        """
        Run until every process has finished and return them in completion order.
        """
        while len(self._finished) < len(self._processes):
            self._admit_arrivals()
            self._check_preemption()
            if self._running is None:
                self._dispatch()
            if self._running is not None:
                self._running.record_first_run(self.clock)
                self._execute()
                self._review()
            self.clock += 1

        logger.debug("Simulation finished at t=%d with %d processes", self.clock, len(self._finished))
        return list(self._finished)

    def results(self) -> List[Process]:
        """Finished processes sorted by label, for reporting."""
        return sorted(self._finished, key=lambda p: p.label)

    def _admit_arrivals(self) -> None:
        for p in self._processes:
            if p.arrival_time == self.clock and not p.is_finished():
                self._queues[p.queue_level].push(p)
                logger.debug("t=%d: %s arrives in Q%d", self.clock, p.label, p.queue_level)

    def _best_candidate(self) -> Optional[Process]:
        # Peek only: nothing leaves a queue until _dispatch commits.
        for level in self._levels:
            head = self._queues[level].peek()
            if head is not None:
                return head
        return None

    def _check_preemption(self) -> None:
        if self._running is None:
            return
        best = self._best_candidate()
        if best is not None and best.queue_level < self._running.queue_level:
            logger.debug(
                "t=%d: %s (Q%d) preempted by %s (Q%d)",
                self.clock,
                self._running.label,
                self._running.queue_level,
                best.label,
                best.queue_level,
            )
            self._requeue_running()

    def _dispatch(self) -> None:
        best = self._best_candidate()
        if best is None:
            return
        ready_queue = self._queues[best.queue_level]
        ready_queue.pop()
        self._running = best
        # Quantum is per occupancy: a preempted process starts over.
        self._remaining_quantum = ready_queue.config.quantum
        logger.debug("t=%d: dispatch %s from Q%d", self.clock, best.label, best.queue_level)

    def _execute(self) -> None:
        p = self._running
        p.tick()
        if self._remaining_quantum is not None:
            self._remaining_quantum -= 1
        self._record_tick(p)

    def _review(self) -> None:
        p = self._running
        # Completion wins over quantum expiry on the same tick.
        if p.is_finished():
            p.finalize(self.clock + 1)
            self._finished.append(p)
            self._running = None
            self._remaining_quantum = None
            logger.debug("t=%d: %s completes (CT=%d)", self.clock, p.label, p.completion_time)
        elif self._remaining_quantum == 0:
            logger.debug("t=%d: %s quantum expired, back to Q%d", self.clock, p.label, p.queue_level)
            self._requeue_running()

    def _requeue_running(self) -> None:
        self._queues[self._running.queue_level].push(self._running)
        self._running = None
        self._remaining_quantum = None

    def _record_tick(self, p: Process) -> None:
        self.trace.append((self.clock, p.label))
        last = self.timeline[-1] if self.timeline else None
        if last is not None and last.label == p.label and last.end_time == self.clock:
            last.end_time = self.clock + 1
        else:
            self.timeline.append(
                ScheduledSlice(label=p.label, start_time=self.clock, end_time=self.clock + 1, queue_level=p.queue_level)
            )


def schedule_mlq(processes: Sequence[Process], queues: Optional[Sequence[QueueConfig]] = None) -> ScheduleResult:
    """
    Simulate the workload and return label-sorted metrics plus the timeline.
    """
    scheduler = MLQScheduler(processes, queues=queues or DEFAULT_QUEUES)
    scheduler.simulate()

    result = ScheduleResult(processes=scheduler.results(), timeline=scheduler.timeline)
    compute_system_metrics(result)
    return result
