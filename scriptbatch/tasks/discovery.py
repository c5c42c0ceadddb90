from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable

from scriptbatch.config import GroupConfig

from .types import EnumerationError, Task


def discover(group: GroupConfig) -> list[Task]:
    directory = group.directory

    if not directory.exists():
        raise EnumerationError(f"{group.name}: directory not found: {directory}")

    if not directory.is_dir():
        raise EnumerationError(f"{group.name}: not a directory: {directory}")

    try:
        paths = [
            p for p in directory.rglob(f"*{group.extension}") if p.is_file()
        ]
    except OSError as exc:
        raise EnumerationError(f"{group.name}: cannot list {directory}") from exc

    return [Task(p) for p in sorted(paths, key=lambda p: p.as_posix())]


def filter_changed(group: GroupConfig, changed: Iterable[str | Path]) -> list[Task]:
    root = group.directory.resolve()
    out: list[Task] = []
    seen: set[Path] = set()

    for item in changed:
        path = Path(item)
        if path.suffix != group.extension:
            continue
        resolved = path.resolve()
        if not resolved.is_relative_to(root):
            continue
        if resolved in seen:
            continue
        seen.add(resolved)
        out.append(Task(path))

    return out


def read_change_list(source: str | Path) -> list[str]:
    """
    Read a whitespace separated list of changed paths, as produced by
    `git diff --name-only --diff-filter=d` or a CI changed-files step.
    Deleted files must be left out, they would be recorded as failures.
    "-" reads stdin.
    """
    if str(source) == "-":
        return sys.stdin.read().split()

    try:
        return Path(source).read_text(encoding="utf-8").split()
    except OSError as exc:
        raise EnumerationError(f"cannot read change list: {source}") from exc


def enumerate_tasks(
    group: GroupConfig,
    *,
    changed: list[str] | None = None,
) -> list[Task]:
    if changed is None:
        return discover(group)
    return filter_changed(group, changed)
