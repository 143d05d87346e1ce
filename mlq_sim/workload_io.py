from __future__ import annotations

import csv
import json
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, List, Sequence

from .metrics import summarize_process_metrics
from .models import Process

FIELDS = ("label", "burst_time", "arrival_time", "queue_level", "priority")
QUEUE_LEVELS = (1, 2, 3)


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload into a list of Process objects.

    ``.json`` and ``.csv`` files use the keys in ``FIELDS``; anything else is
    read as the semicolon text format ``label;burst;arrival;queue;priority``.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)
    return _load_text(path)


def _load_text(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if line.startswith("#") or not line.strip():
                continue

            parts = [part.strip() for part in line.split(";")]
            if len(parts) < len(FIELDS):
                raise ValueError(f"{path}:{lineno}: expected {len(FIELDS)} fields, got {len(parts)}")

            try:
                processes.append(_process_from_mapping(dict(zip(FIELDS, parts))))
            except ValueError as exc:
                raise ValueError(f"{path}:{lineno}: {exc}") from exc
    return processes


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, Iterable) or isinstance(raw, (str, dict)):
        raise ValueError("JSON workload must be a list of process objects")

    processes: List[Process] = []
    for entry in raw:
        _check_json_types(entry)
        processes.append(_process_from_mapping(entry))

    return processes


def _check_json_types(entry) -> None:
    # int() would silently truncate 2.9 and accept true as 1.
    if not isinstance(entry, dict):
        raise ValueError(f"Invalid process entry: {entry!r}")
    for key in FIELDS[1:]:
        value = entry.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValueError(f"Invalid process entry: {key} must be an integer, got {value!r}")


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _process_from_mapping(mapping) -> Process:
    try:
        label = str(mapping["label"]).strip()
        burst_time = int(mapping["burst_time"])
        arrival_time = int(mapping["arrival_time"])
        queue_level = int(mapping["queue_level"])
        priority = int(mapping["priority"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc

    if not label:
        raise ValueError(f"Process label must not be empty: {mapping!r}")
    if burst_time <= 0:
        raise ValueError(f"Process {label!r}: burst time must be positive, got {burst_time}")
    if arrival_time < 0:
        raise ValueError(f"Process {label!r}: arrival time must not be negative, got {arrival_time}")
    if queue_level not in QUEUE_LEVELS:
        raise ValueError(f"Process {label!r}: queue level must be one of {QUEUE_LEVELS}, got {queue_level}")

    return Process(
        label=label,
        burst_time=burst_time,
        arrival_time=arrival_time,
        queue_level=queue_level,
        priority=priority,
    )


def default_report_path(workload_path: str | Path) -> Path:
    workload_path = Path(workload_path)
    return workload_path.with_name(f"salida_{workload_path.name}")


def _one_decimal(value: float) -> str:
    """Round half up, so 0.25 renders as 0.3 rather than 0.2."""
    return str(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_report(source_name: str, processes: Sequence[Process]) -> str:
    """
    Render finished processes in the semicolon report format, with a final
    line of averages.
    """
    lines = [
        f"# archivo: {source_name}",
        "# label; BT; AT; Q; Pr; WT; CT; RT; TAT",
    ]
    for p in processes:
        lines.append(
            f"{p.label};{p.burst_time};{p.arrival_time};{p.queue_level};{p.priority};"
            f"{p.waiting_time};{p.completion_time};{p.response_time};{p.turnaround_time}"
        )

    summary = summarize_process_metrics(list(processes))
    lines.append(
        f"WT={_one_decimal(summary['avg_waiting'])}; CT={_one_decimal(summary['avg_completion'])}; "
        f"RT={_one_decimal(summary['avg_response'])}; TAT={_one_decimal(summary['avg_turnaround'])};"
    )
    return "\n".join(lines) + "\n"


def write_report(source_name: str, processes: Sequence[Process], output_path: str | Path) -> Path:
    output_path = Path(output_path)
    output_path.write_text(format_report(source_name, processes), encoding="utf-8")
    return output_path
