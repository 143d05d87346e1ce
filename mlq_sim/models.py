from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Process:
    """
    One schedulable task: fixed inputs, simulation state and output metrics.

    Output fields are only meaningful once ``is_finished()`` is true.
    """

    label: str
    burst_time: int
    arrival_time: int
    queue_level: int
    priority: int

    remaining_time: int = field(init=False)
    has_run: bool = field(default=False, init=False)

    completion_time: int = field(default=0, init=False)
    response_time: int = field(default=0, init=False)
    waiting_time: int = field(default=0, init=False)
    turnaround_time: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.remaining_time = self.burst_time

    def tick(self) -> None:
        """Run for one time unit. Never drops below zero."""
        if self.remaining_time > 0:
            self.remaining_time -= 1

    def is_finished(self) -> bool:
        return self.remaining_time == 0

    def record_first_run(self, clock: int) -> None:
        """
        Latch the response time the first time the process gets the CPU.

        Later calls are ignored, so a process that is preempted and
        dispatched again keeps its original response time.
        """
        if self.has_run:
            return
        self.response_time = clock - self.arrival_time
        self.has_run = True

    def finalize(self, completion_tick: int) -> None:
        """
        Freeze CT, TAT and WT.

        ``completion_tick`` is the clock value right after the last executed
        tick (the tick that brought remaining time to zero still occupies
        that time unit). Must be called exactly once.
        """
        self.completion_time = completion_tick
        self.turnaround_time = self.completion_time - self.arrival_time
        self.waiting_time = self.turnaround_time - self.burst_time

    def fresh_copy(self) -> "Process":
        return Process(
            label=self.label,
            burst_time=self.burst_time,
            arrival_time=self.arrival_time,
            queue_level=self.queue_level,
            priority=self.priority,
        )


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    label: str
    start_time: int
    end_time: int
    queue_level: int


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float


@dataclass
class ScheduleResult:
    processes: List[Process] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None
