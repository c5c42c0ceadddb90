from __future__ import annotations

import csv
import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, Sequence

from scriptbatch.log import get_logger
from scriptbatch.tasks import Task

from .types import Outcome, Summary, TaskResult

SUMMARY_FILE = "summary.csv"

logger = get_logger(__name__)

ProgressCallback = Callable[[TaskResult, Summary], None]


class BatchRunner:
    def __init__(
        self,
        results_dir: str | Path,
        *,
        interpreter: str | None = None,
        env: dict[str, str] | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.results_dir = Path(results_dir)
        self.interpreter = interpreter or sys.executable
        self.env = env or {}
        self.progress = progress

    @property
    def summary_path(self) -> Path:
        return self.results_dir / SUMMARY_FILE

    def log_path(self, task: Task) -> Path:
        return self.results_dir / f"{task.name}.log"

    def run(self, tasks: Sequence[Task], timeout: float) -> Summary:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.results_dir.mkdir(parents=True, exist_ok=True)
        self.summary_path.write_text("", encoding="utf-8")
        summary = Summary()

        for task in tasks:
            result = self._run_one(task, timeout)
            summary.append(result)
            self._record(result)
            if self.progress is not None:
                self.progress(result, summary)

        logger.info("%d of %d passed", summary.passed, summary.total)
        return summary

    def _run_one(self, task: Task, timeout: float) -> TaskResult:
        log_path = self.log_path(task)
        logger.info("Running %s (timeout %gs)", task, timeout)

        # The log is closed before returning so it is on disk before the next task
        with open(log_path, "wb") as log:
            start = time.monotonic()
            try:
                proc = subprocess.Popen(
                    [self.interpreter, str(task.path)],
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    env={**os.environ, **self.env},
                    start_new_session=os.name == "posix",
                )
            except OSError as exc:
                log.write(f"failed to start {self.interpreter}: {exc}\n".encode())
                logger.error("Could not start %s: %s", task, exc)
                return TaskResult(
                    task, Outcome.FAILED, None, time.monotonic() - start, log_path
                )

            try:
                returncode = proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning("%s exceeded %gs, killing it", task, timeout)
                _kill(proc)
                return TaskResult(task, Outcome.TIMEOUT, None, timeout, log_path)

            duration = time.monotonic() - start

        outcome = Outcome.PASSED if returncode == 0 else Outcome.FAILED
        logger.info("%s finished with exit code %d", task, returncode)
        return TaskResult(task, outcome, returncode, duration, log_path)

    def _record(self, result: TaskResult) -> None:
        with open(self.summary_path, "a", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(
                [str(result.task.path), result.outcome.value, _seconds(result)]
            )


def _seconds(result: TaskResult) -> str:
    if result.outcome is Outcome.TIMEOUT:
        return f"{result.duration_s:g}"
    return f"{result.duration_s:.3f}"


def _kill(proc: subprocess.Popen) -> None:
    # The child runs in its own session, take its whole process group down
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            proc.kill()
    else:
        proc.kill()
    proc.wait()
