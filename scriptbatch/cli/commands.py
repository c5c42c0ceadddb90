from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from scriptbatch import report
from scriptbatch.config import ConfigError, GroupConfig, ProjectConfig, load_project
from scriptbatch.executor import BatchRunner, Summary, TaskResult
from scriptbatch.log import setup_logger
from scriptbatch.patching import PatchError, apply_patches
from scriptbatch.tasks import EnumerationError, enumerate_tasks, read_change_list

from .args import build_parser


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        setup_logger(level=logging.DEBUG if args.verbose else logging.WARNING)

        match args.command:
            case "run":
                return cmd_run(args)
            case "list":
                return cmd_list(args)
            case "patch":
                return cmd_patch(args)
            case "check":
                return cmd_check(args)
            case _:
                return 2

    except (ConfigError, EnumerationError, PatchError, report.SummaryFormatError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def main() -> None:
    sys.exit(run_cli())


def cmd_run(args: argparse.Namespace) -> int:
    project = load_project(args.config)
    group = _group(project, args.group)

    if not args.no_patch:
        apply_patches(project.patches)

    changed = _change_list(args)
    tasks = enumerate_tasks(group, changed=changed)
    if changed is not None and not tasks:
        print(f"No tasks changed in {group.name} - skipping", flush=True)

    results_dir = Path(args.results_dir) if args.results_dir else project.results_dir
    timeout = args.timeout or project.timeout_for(group.name)

    if args.ci:
        report.begin_group(f"Running tasks in {group.name}", sys.stdout)

    runner = BatchRunner(
        results_dir,
        interpreter=project.interpreter,
        env=group.env,
        progress=_print_progress,
    )
    summary = runner.run(tasks, timeout)

    if args.ci:
        report.end_group(sys.stdout)
        report.write_github_output(summary)

    _print_verdict(summary, results_dir)
    return summary.exit_code


def cmd_list(args: argparse.Namespace) -> int:
    project = load_project(args.config)
    group = _group(project, args.group)
    for task in enumerate_tasks(group, changed=_change_list(args)):
        print(task)
    return 0


def cmd_patch(args: argparse.Namespace) -> int:
    project = load_project(args.config)
    patched = apply_patches(project.patches)
    for path in patched.modified:
        print(path)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    if args.results_dir:
        results_dir = Path(args.results_dir)
    else:
        results_dir = load_project(args.config).results_dir
    summary = report.read_summary(results_dir)
    _print_verdict(summary, results_dir)
    return summary.exit_code


def _group(project: ProjectConfig, name: str) -> GroupConfig:
    if not project.has_group(name):
        known = ", ".join(project.group_names())
        raise ConfigError(f"Unknown group '{name}' (known groups: {known})")
    return project.get_group(name)


def _change_list(args: argparse.Namespace) -> list[str] | None:
    if args.changed is None and args.changed_from is None:
        return None

    changed: list[str] = list(args.changed or [])
    if args.changed_from is not None:
        changed.extend(read_change_list(args.changed_from))
    return changed


def _print_progress(result: TaskResult, summary: Summary) -> None:
    print(report.format_result(result, summary))
    for line in report.failure_details(result):
        print(line)
    sys.stdout.flush()


def _print_verdict(summary: Summary, results_dir: Path) -> None:
    print(report.verdict(summary))
    if summary.failed:
        print(f"See the logs in {results_dir} for details.")
    sys.stdout.flush()
