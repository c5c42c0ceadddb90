from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scriptbatch")

    parser.add_argument(
        "--config",
        default="scriptbatch.yml",
        help="Path to config file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log task lifecycle and patching to stderr",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run every task of a group")
    run.add_argument("group", help="Task group to run")
    _add_change_list_args(run)
    run.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        help="Per task timeout in seconds (overrides the config)",
    )
    run.add_argument(
        "--results-dir",
        default=None,
        help="Where logs and summary.csv are written",
    )
    run.add_argument(
        "--no-patch",
        action="store_true",
        help="Do not apply the configured patches before running",
    )
    run.add_argument(
        "--ci",
        action="store_true",
        help="Emit CI log groups and write counters to $GITHUB_OUTPUT",
    )

    # list
    list_ = subparsers.add_parser("list", help="List the tasks a run would execute")
    list_.add_argument("group", help="Task group to list")
    _add_change_list_args(list_)

    # patch
    subparsers.add_parser("patch", help="Apply the configured patches")

    # check
    check = subparsers.add_parser("check", help="Report on an existing summary")
    check.add_argument(
        "--results-dir",
        default=None,
        help="Directory holding summary.csv",
    )

    return parser


def _add_change_list_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--changed",
        nargs="*",
        default=None,
        metavar="PATH",
        help="Only consider these changed files",
    )
    parser.add_argument(
        "--changed-from",
        default=None,
        metavar="FILE",
        help="Read changed files from FILE ('-' for stdin)",
    )


def _positive_float(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return seconds
