from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .gantt import build_rich_gantt
from .metrics import summarize_process_metrics
from .models import ScheduleResult
from .queues import DEFAULT_QUEUES, QueueConfig
from .scheduler import schedule_mlq
from .workload_io import default_report_path, load_workload, write_report

logger = logging.getLogger(__name__)


def _non_negative_float(value: str) -> float:
    try:
        delay = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if delay < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return delay


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mlq-sim",
        description="Multilevel Queue CPU scheduling simulator (Q1 RR, Q2 RR, Q3 priority).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every arrival, dispatch, preemption and completion.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Simulate a workload file and write the report.")
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to a workload file (.txt semicolon format, .json or .csv).",
    )
    run_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Report path (default: salida_<workload name> next to the workload).",
    )
    run_parser.add_argument(
        "--no-report",
        action="store_true",
        help="Only print the results, do not write a report file.",
    )
    run_parser.add_argument(
        "--q1",
        type=int,
        default=DEFAULT_QUEUES[0].quantum,
        help=f"Round-robin quantum for queue 1 (default: {DEFAULT_QUEUES[0].quantum}).",
    )
    run_parser.add_argument(
        "--q2",
        type=int,
        default=DEFAULT_QUEUES[1].quantum,
        help=f"Round-robin quantum for queue 2 (default: {DEFAULT_QUEUES[1].quantum}).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=_non_negative_float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
    )


def _queue_configs(q1: int, q2: int) -> tuple[QueueConfig, ...]:
    first, second, third = DEFAULT_QUEUES
    return (
        QueueConfig(level=first.level, policy=first.policy, quantum=q1),
        QueueConfig(level=second.level, policy=second.policy, quantum=q2),
        third,
    )


def _print_result(result: ScheduleResult, console: Console) -> None:
    panel, time_marks = build_rich_gantt(result.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = ["Label", "BT", "AT", "Q", "Pr", "WT", "CT", "RT", "TAT"]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"Label", "Q"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            p.label,
            str(p.burst_time),
            str(p.arrival_time),
            str(p.queue_level),
            str(p.priority),
            str(p.waiting_time),
            str(p.completion_time),
            str(p.response_time),
            str(p.turnaround_time),
        )

    console.print(proc_table)
    console.print()

    summary = summarize_process_metrics(result.processes)
    sys_table = Table(title="Averages", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting (WT)", f"{summary['avg_waiting']:.2f}")
    sys_table.add_row("Avg completion (CT)", f"{summary['avg_completion']:.2f}")
    sys_table.add_row("Avg response (RT)", f"{summary['avg_response']:.2f}")
    sys_table.add_row("Avg turnaround (TAT)", f"{summary['avg_turnaround']:.2f}")
    if result.system:
        sys = result.system
        sys_table.add_row("Makespan", str(sys.makespan))
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")

    console.print(sys_table)


def _animate_result(result: ScheduleResult, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual replay of the computed schedule.
    """
    timeline = sorted(result.timeline, key=lambda s: (s.start_time, s.end_time))
    if not timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = max(s.end_time for s in timeline)
    console.print(f"[bold]Simulating MLQ[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(makespan):
        running: Optional[str] = None
        bar = ""
        for sl in timeline:
            if sl.start_time <= t < sl.end_time:
                running = f"{sl.label} (Q{sl.queue_level})"
                bar = f"[green]{'█' * (t - sl.start_time + 1)}[/green]"
                break
        msg = f"t={t:2d}: " + (running or "(idle)")
        console.print(msg + (" " + bar if bar else ""))
        time.sleep(delay)


def _run(args: argparse.Namespace, console: Console) -> int:
    workload_path = Path(args.workload)
    processes = load_workload(workload_path)
    logger.info("Loaded %d processes from %s", len(processes), workload_path)

    result = schedule_mlq(processes, queues=_queue_configs(args.q1, args.q2))

    if args.step:
        try:
            _animate_result(result, delay=args.step_delay, console=console)
        except KeyboardInterrupt:
            console.print("[yellow]Animation skipped.[/yellow]")
    _print_result(result, console)

    if not args.no_report:
        output = Path(args.output) if args.output else default_report_path(workload_path)
        write_report(workload_path.name, result.processes, output)
        console.print(f"[bold]Report written to:[/bold] [green]{output}[/green]")

    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    console = Console()

    if args.command == "run":
        try:
            return _run(args, console)
        except (ValueError, OSError) as exc:
            console.print(f"[red]Error: {escape(str(exc))}[/red]")
            return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
