from __future__ import annotations

from pathlib import Path
import os

from dtree.config import DEFAULT_CHUNK_SIZE
from dtree.errors import CopyError


DESTINATION_MODE = 0o644


def _read_chunk(descriptor: int, size: int) -> bytes:
    while True:
        try:
            return os.read(descriptor, size)
        except InterruptedError:
            continue


def _write_all(descriptor: int, chunk: bytes) -> None:
    view = memoryview(chunk)
    while view:
        try:
            written = os.write(descriptor, view)
        except InterruptedError:
            continue
        view = view[written:]


def stream_copy(source: Path, destination: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Copy ``source`` to ``destination`` byte for byte and return the bytes written.

    Short writes are retried until the chunk is flushed. On failure a
    ``CopyError`` is raised and any partial destination file is left in place.
    """
    try:
        source_fd = os.open(source, os.O_RDONLY)
    except OSError as exc:
        raise CopyError(source, destination, exc) from exc

    try:
        try:
            destination_fd = os.open(destination, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, DESTINATION_MODE)
        except OSError as exc:
            raise CopyError(source, destination, exc) from exc

        try:
            total = 0
            for chunk in iter(lambda: _read_chunk(source_fd, chunk_size), b""):
                _write_all(destination_fd, chunk)
                total += len(chunk)
            return total
        except OSError as exc:
            raise CopyError(source, destination, exc) from exc
        finally:
            os.close(destination_fd)
    finally:
        os.close(source_fd)
