from __future__ import annotations

from pathlib import Path
from typing import TextIO
import logging
import os

from dtree.actions import RunContext, build_handler
from dtree.config import DESTINATION_ACTIONS, OperationConfig, Settings
from dtree.errors import DtreeError, RootValidationError, UsageError
from dtree.models import RunSummary
from dtree.paths import ensure_directory, is_within
from dtree.walker import walk_tree


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _validate_root(root: Path) -> None:
    if not root.is_dir():
        raise RootValidationError(f"Error: {root} is not a directory.")


def _validate_destination(source_root: Path, destination_root: Path) -> None:
    if is_within(destination_root, source_root):
        raise RootValidationError(
            f"Invalid destination: {destination_root} is the source or lies inside it, which would recurse"
        )


def _build_context(
    config: OperationConfig,
    settings: Settings,
    out: TextIO | None,
    logger: logging.Logger,
) -> RunContext:
    _validate_root(config.root)
    source_root = Path(os.path.abspath(config.root))

    destination_root: Path | None = None
    if config.action in DESTINATION_ACTIONS:
        if config.destination is None:
            raise UsageError(f"'{config.action.value}' requires a destination directory")
        destination_root = Path(os.path.abspath(config.destination))
        _validate_destination(source_root, destination_root)
        ensure_directory(destination_root, logger)

    return RunContext(
        config=config,
        source_root=source_root,
        destination_root=destination_root,
        settings=settings,
        out=out,
        logger=logger,
    )


def run_tree_operation(
    config: OperationConfig,
    settings: Settings | None = None,
    out: TextIO | None = None,
    logger: logging.Logger | None = None,
) -> tuple[int, RunSummary]:
    log = logger or logging.getLogger("dtree.run")
    settings = settings or Settings()

    try:
        context = _build_context(config, settings, out, log)
        handler = build_handler(context)
    except DtreeError as exc:
        log.error("%s", exc)
        return EXIT_FAILURE, RunSummary()

    try:
        context.summary.visited = walk_tree(
            context.source_root,
            handler.handle,
            max_open_directories=settings.max_open_directories,
            logger=log,
        )
    except DtreeError as exc:
        log.error("%s", exc)
        return EXIT_FAILURE, context.summary

    line = handler.summary_line()
    if line is not None:
        context.emit(line)
    handler.finish()

    summary = context.summary
    log.info(
        "%s %s | visited=%s copied=%s moved=%s deleted=%s skipped=%s failed=%s",
        config.action.value,
        context.source_root,
        summary.visited,
        summary.copied,
        summary.moved,
        summary.deleted,
        summary.skipped,
        summary.failed,
    )
    return EXIT_SUCCESS, summary
