from __future__ import annotations

from pathlib import Path
import logging
import os


log = logging.getLogger("dtree.paths")


def resolve_relative(node_path: Path | str, root: Path | str) -> Path | None:
    """Strip ``root`` from ``node_path``.

    Only a separator-aligned prefix counts: ``/a/bb/file`` is not under ``/a/b``.
    Returns ``None`` when the node is not under the root, and an empty relative
    path when the node is the root itself.
    """
    node = os.fspath(node_path)
    base = os.fspath(root)
    if len(base) > 1:
        base = base.rstrip(os.sep) or os.sep

    if node == base:
        return Path()

    prefix = base if base.endswith(os.sep) else base + os.sep
    if node.startswith(prefix) and len(node) > len(prefix):
        return Path(node[len(prefix):])
    return None


def destination_for(node_path: Path | str, source_root: Path | str, destination_root: Path) -> Path | None:
    relative = resolve_relative(node_path, source_root)
    if relative is None:
        return None
    return destination_root / relative


def is_within(path: Path, root: Path) -> bool:
    return resolve_relative(path.resolve(), root.resolve()) is not None


def extension_of(path: Path | str) -> str | None:
    name = os.path.basename(os.fspath(path))
    index = name.rfind(".")
    if index < 0:
        return None
    return name[index:]


def matches_extension(path: Path | str, extension: str | None) -> bool:
    if not extension:
        return False
    return extension_of(path) == extension


def ensure_directory(path: Path, logger: logging.Logger | None = None) -> bool:
    """Create ``path`` and its missing ancestors.

    An existing directory is not an error. Any other failure (permission
    denied, a file in the way) is logged and reported as ``False``; the caller's
    next write will surface it against the specific file.
    """
    logger = logger or log
    try:
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Unable to create directory %s: %s", path, exc)
        return False
    return True
