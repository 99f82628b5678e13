from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from dtree.config import ActionKind, build_operation_config, load_settings
from dtree.errors import UsageError
from dtree.run_service import EXIT_FAILURE, EXIT_SUCCESS, run_tree_operation


LOG_FORMAT = "%(levelname)s %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dtree", description="Walk a directory tree and apply one operation")
    parser.add_argument("--config", type=Path, help="YAML or JSON settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-node details")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser(ActionKind.LIST.value, help="Print every path under root")
    list_parser.add_argument("root", type=Path)

    ext_parser = subparsers.add_parser(ActionKind.LIST_BY_EXTENSION.value, help="Print files ending in ext")
    ext_parser.add_argument("root", type=Path)
    ext_parser.add_argument("extension")

    for action, help_text in (
        (ActionKind.COUNT_FILES, "Print total file count"),
        (ActionKind.COUNT_DIRECTORIES, "Print total directory count"),
        (ActionKind.SUM_SIZE, "Print cumulative byte size of files"),
    ):
        count_parser = subparsers.add_parser(action.value, help=help_text)
        count_parser.add_argument("root", type=Path)

    copy_parser = subparsers.add_parser(ActionKind.COPY_TREE.value, help="Mirror tree under dest")
    copy_parser.add_argument("root", type=Path)
    copy_parser.add_argument("destination", type=Path)
    copy_parser.add_argument("extension", nargs="?", help="Skip files ending in this extension")

    move_parser = subparsers.add_parser(ActionKind.MOVE_TREE.value, help="Move tree under dest")
    move_parser.add_argument("root", type=Path)
    move_parser.add_argument("destination", type=Path)

    delete_parser = subparsers.add_parser(ActionKind.DELETE_BY_EXTENSION.value, help="Delete files ending in ext")
    delete_parser.add_argument("root", type=Path)
    delete_parser.add_argument("extension")

    return parser


def _configure_logging(level: str) -> logging.Logger:
    logger = logging.getLogger("dtree")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return EXIT_SUCCESS if exc.code == 0 else EXIT_FAILURE

    try:
        settings = load_settings(args.config)
    except Exception as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    level = "DEBUG" if args.verbose else (args.log_level or settings.log_level).upper()
    try:
        _configure_logging(level)
    except ValueError:
        print(f"Unknown log level: {level}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        config = build_operation_config(
            args.command,
            args.root,
            destination=getattr(args, "destination", None),
            extension=getattr(args, "extension", None),
        )
    except UsageError as exc:
        print(f"{exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_FAILURE

    exit_code, _ = run_tree_operation(config, settings=settings, logger=logging.getLogger("dtree.run"))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
