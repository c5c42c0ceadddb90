from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from scriptbatch.tasks import Task

MAX_EXIT_CODE = 255


class Outcome(str, Enum):
    PASSED = "pass"
    FAILED = "fail"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class TaskResult:
    task: Task
    outcome: Outcome
    returncode: int | None
    duration_s: float
    log_path: Path

    @property
    def passed(self) -> bool:
        return self.outcome is Outcome.PASSED


@dataclass
class Summary:
    results: list[TaskResult] = field(default_factory=list)

    def append(self, result: TaskResult) -> None:
        self.results.append(result)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        # Timeouts count as failures
        return self.total - self.passed

    @property
    def timed_out(self) -> int:
        return sum(1 for r in self.results if r.outcome is Outcome.TIMEOUT)

    @property
    def exit_code(self) -> int:
        return min(self.failed, MAX_EXIT_CODE)

    def __iter__(self):
        return iter(self.results)

    def __len__(self):
        return len(self.results)
