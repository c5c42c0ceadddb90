"""
Human readable output for a batch: one line per task, failure details,
the final verdict, and CI integration.
"""

from __future__ import annotations

import csv
import os
from collections import deque
from pathlib import Path
from typing import TextIO

from scriptbatch.executor import SUMMARY_FILE, Outcome, Summary, TaskResult
from scriptbatch.tasks import Task

TAIL_LINES = 20
SEPARATOR = "-" * 40

_LABELS = {
    Outcome.PASSED: "PASSED",
    Outcome.FAILED: "FAILED",
    Outcome.TIMEOUT: "TIMEOUT",
}


class SummaryFormatError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


def format_result(result: TaskResult, summary: Summary) -> str:
    label = _LABELS[result.outcome]
    if result.outcome is Outcome.TIMEOUT:
        timing = f"exceeded {result.duration_s:g}s"
    else:
        timing = f"{result.duration_s:.2f}s"
    tally = f"[{summary.passed}/{summary.total} passed]"
    return f"{label} {result.task} ({timing}) {tally}"


def failure_details(result: TaskResult) -> list[str]:
    """Full log for a failure, the last lines for a timeout, nothing otherwise."""
    if result.outcome is Outcome.PASSED:
        return []

    lines = _read_log(result.log_path)
    if result.outcome is Outcome.TIMEOUT:
        header = "Last output before timeout:"
        lines = list(deque(lines, maxlen=TAIL_LINES))
    else:
        header = "Error details:"

    return [header, SEPARATOR, *lines, SEPARATOR]


def verdict(summary: Summary) -> str:
    if summary.total == 0:
        return "No tasks were run."
    line = f"{summary.passed} of {summary.total} passed."
    if summary.failed:
        line += f" {summary.failed} failed"
        if summary.timed_out:
            line += f" ({summary.timed_out} timed out)"
        line += "."
    return line


def read_summary(results_dir: str | Path) -> Summary:
    results_dir = Path(results_dir)
    path = results_dir / SUMMARY_FILE
    summary = Summary()

    # A skipped run leaves no summary behind, that is an empty batch
    if not path.exists():
        return summary

    with open(path, newline="", encoding="utf-8") as fh:
        for lineno, row in enumerate(csv.reader(fh), start=1):
            if not row:
                continue
            if len(row) != 3:
                raise SummaryFormatError(f"{path}:{lineno}: expected 3 fields, got {len(row)}")

            raw_path, raw_outcome, raw_seconds = row
            try:
                outcome = Outcome(raw_outcome)
                seconds = float(raw_seconds)
            except ValueError as exc:
                raise SummaryFormatError(f"{path}:{lineno}: {exc}") from exc

            task = Task(Path(raw_path))
            summary.append(
                TaskResult(
                    task, outcome, None, seconds, results_dir / f"{task.name}.log"
                )
            )

    return summary


def begin_group(title: str, out: TextIO) -> None:
    print(f"::group::{title}", file=out)


def end_group(out: TextIO) -> None:
    print("::endgroup::", file=out)


def write_github_output(summary: Summary, path: str | Path | None = None) -> bool:
    """Append the counters to $GITHUB_OUTPUT. Returns False when it is not set."""
    path = path or os.environ.get("GITHUB_OUTPUT")
    if not path:
        return False

    with open(path, "a", encoding="utf-8") as fh:
        fh.write(f"total={summary.total}\n")
        fh.write(f"passed={summary.passed}\n")
        fh.write(f"failed={summary.failed}\n")
    return True


def _read_log(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return [f"(log not available: {path})"]
