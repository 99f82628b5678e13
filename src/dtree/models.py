from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class TraversalNode:
    path: Path
    kind: NodeKind
    size: int = 0
    depth: int = 0

    @property
    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY


@dataclass(slots=True)
class Aggregates:
    files: int = 0
    directories: int = 0
    total_size: int = 0


@dataclass(slots=True)
class RunSummary:
    visited: int = 0
    copied: int = 0
    moved: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0
