from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .models import Process


class QueuePolicy(Enum):
    ROUND_ROBIN = "rr"
    PRIORITY = "priority"


@dataclass(frozen=True)
class QueueConfig:
    """
    Static configuration of one ready queue.

    ``quantum`` of None means the occupant runs until it finishes or is
    preempted by a higher level.
    """

    level: int
    policy: QueuePolicy
    quantum: Optional[int] = None


DEFAULT_QUEUES: Tuple[QueueConfig, ...] = (
    QueueConfig(level=1, policy=QueuePolicy.ROUND_ROBIN, quantum=1),
    QueueConfig(level=2, policy=QueuePolicy.ROUND_ROBIN, quantum=3),
    QueueConfig(level=3, policy=QueuePolicy.PRIORITY, quantum=None),
)


class ReadyQueue:
    """
    Heap-backed ready queue for a single level.

    Every entry carries an insertion sequence number, so equal keys always
    come out in the order they went in. Round-robin queues order by that
    number alone (FIFO); the priority queue orders by descending priority
    first.
    """

    def __init__(self, config: QueueConfig) -> None:
        self.config = config
        self._heap: List[Tuple[Tuple[int, ...], Process]] = []
        self._counter = itertools.count()

    @property
    def level(self) -> int:
        return self.config.level

    def _key(self, process: Process, seq: int) -> Tuple[int, ...]:
        if self.config.policy is QueuePolicy.PRIORITY:
            return (-process.priority, seq)
        return (seq,)

    def push(self, process: Process) -> None:
        seq = next(self._counter)
        heapq.heappush(self._heap, (self._key(process, seq), process))

    def peek(self) -> Optional[Process]:
        if not self._heap:
            return None
        return self._heap[0][1]

    def pop(self) -> Process:
        if not self._heap:
            raise IndexError(f"pop from empty ready queue Q{self.level}")
        return heapq.heappop(self._heap)[1]

    def labels(self) -> List[str]:
        """Labels in dispatch order (for debugging and tests)."""
        return [entry[1].label for entry in sorted(self._heap, key=lambda e: e[0])]

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
