from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator
import logging
import os

from dtree.config import DEFAULT_MAX_OPEN_DIRECTORIES
from dtree.errors import TraversalError
from dtree.models import NodeKind, TraversalNode


log = logging.getLogger("dtree.walker")

Visitor = Callable[[TraversalNode], None]


@dataclass(slots=True)
class _Frame:
    directory: Path
    depth: int
    entries: Iterator[os.DirEntry[str]]
    scanner: Any = None

    def close(self) -> None:
        if self.scanner is not None:
            self.scanner.close()
            self.scanner = None


def _node_for_entry(entry: os.DirEntry[str], depth: int, logger: logging.Logger) -> TraversalNode:
    path = Path(entry.path)
    try:
        if entry.is_symlink():
            return TraversalNode(path=path, kind=NodeKind.OTHER, depth=depth)
        if entry.is_dir(follow_symlinks=False):
            return TraversalNode(path=path, kind=NodeKind.DIRECTORY, depth=depth)
        if entry.is_file(follow_symlinks=False):
            size = entry.stat(follow_symlinks=False).st_size
            return TraversalNode(path=path, kind=NodeKind.FILE, size=size, depth=depth)
    except OSError as exc:
        logger.debug("Cannot stat %s, visiting as other: %s", path, exc)
    return TraversalNode(path=path, kind=NodeKind.OTHER, depth=depth)


def walk_tree(
    root: Path | str,
    visit: Visitor,
    max_open_directories: int = DEFAULT_MAX_OPEN_DIRECTORIES,
    logger: logging.Logger | None = None,
) -> int:
    """Depth-first, pre-order walk of ``root`` that never follows symlinks.

    ``visit`` is called once per node, the root first. At most
    ``max_open_directories`` scan handles are held at once; deeper directories
    are read in full and closed before descending. Returns the number of
    visited nodes. Scan failures raise ``TraversalError``.
    """
    logger = logger or log
    root_path = Path(os.path.abspath(root))
    limit = max(1, max_open_directories)
    frames: list[_Frame] = []
    open_handles = 0

    def open_frame(directory: Path, depth: int) -> _Frame:
        nonlocal open_handles
        try:
            scanner = os.scandir(directory)
        except OSError as exc:
            raise TraversalError(directory, exc) from exc

        if open_handles < limit:
            open_handles += 1
            return _Frame(directory=directory, depth=depth, entries=iter(scanner), scanner=scanner)

        try:
            entries = list(scanner)
        except OSError as exc:
            raise TraversalError(directory, exc) from exc
        finally:
            scanner.close()
        return _Frame(directory=directory, depth=depth, entries=iter(entries))

    def close_frame(frame: _Frame) -> None:
        nonlocal open_handles
        if frame.scanner is not None:
            open_handles -= 1
        frame.close()

    visit(TraversalNode(path=root_path, kind=NodeKind.DIRECTORY, depth=0))
    visited = 1

    try:
        frames.append(open_frame(root_path, 1))
        while frames:
            frame = frames[-1]
            try:
                entry = next(frame.entries, None)
            except OSError as exc:
                raise TraversalError(frame.directory, exc) from exc

            if entry is None:
                close_frame(frames.pop())
                continue

            node = _node_for_entry(entry, frame.depth, logger)
            visit(node)
            visited += 1

            if node.kind is NodeKind.DIRECTORY:
                frames.append(open_frame(node.path, frame.depth + 1))
    finally:
        while frames:
            close_frame(frames.pop())

    return visited
