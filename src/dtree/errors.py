from __future__ import annotations

from pathlib import Path


class DtreeError(Exception):
    pass


class UsageError(DtreeError):
    pass


class RootValidationError(DtreeError):
    pass


class TraversalError(DtreeError):
    """Raised when a directory under the root cannot be scanned; aborts the whole run."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot scan {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class CopyError(DtreeError):
    def __init__(self, source: Path, destination: Path, cause: OSError) -> None:
        super().__init__(f"Unable to copy {source} -> {destination}: {cause.strerror or cause}")
        self.source = source
        self.destination = destination
        self.cause = cause
