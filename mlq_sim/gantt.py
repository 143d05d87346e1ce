from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice

QUEUE_STYLES = {1: "bold red", 2: "bold yellow", 3: "bold cyan"}


def build_rich_gantt(slices: List[ScheduledSlice]) -> tuple[Panel, str]:
    """
    Build a Rich Panel with one Gantt row per queue level, plus a string with
    time marks.

    Each row shows when its level held the CPU; dots mark ticks where the
    level did not run. A tick that is dotted in every row was idle.
    """
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))
    makespan = slices[-1].end_time
    levels = sorted(set(QUEUE_STYLES) | {s.queue_level for s in slices})

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    label_to_color: Dict[str, str] = {}

    def label_color(label: str) -> str:
        if label not in label_to_color:
            idx = len(label_to_color) % len(colors)
            label_to_color[label] = colors[idx]
        return label_to_color[label]

    rows = {level: Text() for level in levels}
    cursor = {level: 0 for level in levels}
    time_marks = "0"
    last_time = 0

    for sl in slices:
        if sl.start_time > last_time:
            time_marks += f"{sl.start_time:>3}"

        row = rows[sl.queue_level]
        gap = sl.start_time - cursor[sl.queue_level]
        if gap > 0:
            row.append("." * gap, style="dim")

        width = max(1, sl.end_time - sl.start_time)
        row.append(sl.label[:width].ljust(width), style=f"bold on {label_color(sl.label)}")

        cursor[sl.queue_level] = sl.end_time
        last_time = sl.end_time
        time_marks += f"{last_time:>3}"

    table = Table.grid(padding=(0, 1))
    for level in levels:
        tail = makespan - cursor[level]
        if tail > 0:
            rows[level].append("." * tail, style="dim")
        table.add_row(Text(f"Q{level}", style=QUEUE_STYLES.get(level, "bold")), rows[level])

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
