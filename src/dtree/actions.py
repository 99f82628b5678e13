from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO
import logging
import os
import sys

from dtree.config import ActionKind, OperationConfig, Settings
from dtree.copier import stream_copy
from dtree.errors import CopyError, UsageError
from dtree.models import Aggregates, RunSummary, TraversalNode
from dtree.paths import destination_for, ensure_directory, matches_extension


@dataclass(slots=True)
class RunContext:
    config: OperationConfig
    source_root: Path
    destination_root: Path | None = None
    settings: Settings = field(default_factory=Settings)
    aggregates: Aggregates = field(default_factory=Aggregates)
    summary: RunSummary = field(default_factory=RunSummary)
    out: TextIO | None = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("dtree.actions"))

    def emit(self, line: str) -> None:
        stream = self.out or sys.stdout
        buffer = getattr(stream, "buffer", None)
        if buffer is None:
            print(line, file=stream)
            return
        # undecodable file names come back as surrogates; write the original bytes
        stream.flush()
        buffer.write(os.fsencode(line) + b"\n")
        buffer.flush()


class NodeHandler:
    def __init__(self, context: RunContext) -> None:
        self.context = context

    def handle(self, node: TraversalNode) -> None:
        raise NotImplementedError

    def summary_line(self) -> str | None:
        return None

    def finish(self) -> None:
        pass


class ListPathsHandler(NodeHandler):
    def handle(self, node: TraversalNode) -> None:
        self.context.emit(str(node.path))


class ListByExtensionHandler(NodeHandler):
    def handle(self, node: TraversalNode) -> None:
        if node.is_file and matches_extension(node.path, self.context.config.include_extension):
            self.context.emit(os.path.realpath(node.path))


class CountFilesHandler(NodeHandler):
    def handle(self, node: TraversalNode) -> None:
        if node.is_file:
            self.context.aggregates.files += 1

    def summary_line(self) -> str | None:
        return f"Total files: {self.context.aggregates.files}"


class CountDirectoriesHandler(NodeHandler):
    def handle(self, node: TraversalNode) -> None:
        if node.is_dir:
            self.context.aggregates.directories += 1

    def summary_line(self) -> str | None:
        return f"Total directories: {self.context.aggregates.directories}"


class SumSizeHandler(NodeHandler):
    def handle(self, node: TraversalNode) -> None:
        if node.is_file:
            self.context.aggregates.total_size += node.size

    def summary_line(self) -> str | None:
        return f"Total size: {self.context.aggregates.total_size} bytes"


class CopyTreeHandler(NodeHandler):
    def __init__(self, context: RunContext) -> None:
        super().__init__(context)
        if context.destination_root is None:
            raise UsageError(f"'{context.config.action.value}' requires a destination directory")
        self._destination_root: Path = context.destination_root

    def _destination(self, node: TraversalNode) -> Path | None:
        destination = destination_for(node.path, self.context.source_root, self._destination_root)
        if destination is None:
            self.context.logger.debug("No relative path for %s under %s", node.path, self.context.source_root)
            self.context.summary.skipped += 1
        return destination

    def _materialize(self, node: TraversalNode) -> None:
        destination = self._destination(node)
        if destination is not None:
            ensure_directory(destination, self.context.logger)

    def _copy(self, node: TraversalNode) -> bool:
        destination = self._destination(node)
        if destination is None:
            return False
        ensure_directory(destination.parent, self.context.logger)
        try:
            stream_copy(node.path, destination, chunk_size=self.context.settings.chunk_size)
        except CopyError as exc:
            self.context.logger.error("Unable to copy %s: %s", node.path, exc.cause.strerror or exc.cause)
            self.context.summary.failed += 1
            return False
        return True

    def handle(self, node: TraversalNode) -> None:
        if node.is_dir:
            self._materialize(node)
        elif node.is_file:
            if matches_extension(node.path, self.context.config.exclude_extension):
                self.context.summary.skipped += 1
                return
            if self._copy(node):
                self.context.summary.copied += 1
        else:
            self.context.summary.skipped += 1


class MoveTreeHandler(CopyTreeHandler):
    def __init__(self, context: RunContext) -> None:
        super().__init__(context)
        self._source_directories: list[Path] = []

    def handle(self, node: TraversalNode) -> None:
        if node.is_dir:
            if node.depth == 0:
                return
            self._source_directories.append(node.path)
            self._materialize(node)
        elif node.is_file:
            if not self._copy(node):
                return
            try:
                node.path.unlink()
            except OSError as exc:
                self.context.logger.error("Error on move: %s: %s", node.path, exc.strerror or exc)
                self.context.summary.failed += 1
                return
            self.context.summary.moved += 1
        else:
            self.context.summary.skipped += 1

    def finish(self) -> None:
        for directory in reversed(self._source_directories):
            try:
                directory.rmdir()
            except OSError as exc:
                self.context.logger.debug("Keeping source directory %s: %s", directory, exc)

        try:
            self.context.source_root.rmdir()
        except OSError as exc:
            self.context.logger.warning(
                "Unable to delete source %s, directory might not be empty: %s",
                self.context.source_root,
                exc.strerror or exc,
            )


class DeleteByExtensionHandler(NodeHandler):
    def handle(self, node: TraversalNode) -> None:
        if not node.is_file or not matches_extension(node.path, self.context.config.include_extension):
            return
        try:
            node.path.unlink()
        except OSError as exc:
            self.context.logger.error("Failed to delete: %s: %s", node.path, exc.strerror or exc)
            self.context.summary.failed += 1
            return
        self.context.summary.deleted += 1


HANDLERS: dict[ActionKind, type[NodeHandler]] = {
    ActionKind.LIST: ListPathsHandler,
    ActionKind.LIST_BY_EXTENSION: ListByExtensionHandler,
    ActionKind.COUNT_FILES: CountFilesHandler,
    ActionKind.COUNT_DIRECTORIES: CountDirectoriesHandler,
    ActionKind.SUM_SIZE: SumSizeHandler,
    ActionKind.COPY_TREE: CopyTreeHandler,
    ActionKind.MOVE_TREE: MoveTreeHandler,
    ActionKind.DELETE_BY_EXTENSION: DeleteByExtensionHandler,
}


def build_handler(context: RunContext) -> NodeHandler:
    return HANDLERS[context.config.action](context)
