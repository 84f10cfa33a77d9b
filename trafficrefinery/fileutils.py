"""Filesystem helpers: locating the repository root and reading line files."""

from __future__ import annotations

import os

REPO_DIR_NAME = "traffic-refinery"


def get_repo_path(start: str | os.PathLike | None = None) -> str:
    """Return the nearest enclosing directory named ``traffic-refinery``.

    The search starts at ``start`` (the working directory by default) and walks
    upwards. Raises FileNotFoundError when the filesystem root is reached.
    """
    path = os.path.abspath(os.fspath(start) if start is not None else os.getcwd())
    while True:
        if os.path.basename(path) == REPO_DIR_NAME:
            return path
        parent = os.path.dirname(path)
        if parent == path:
            raise FileNotFoundError(f"no {REPO_DIR_NAME} directory above {start or os.getcwd()}")
        path = parent


def get_string_lines(fname: str | os.PathLike) -> list[str]:
    """Return the lines of a file without line endings; an empty list if it cannot be opened."""
    try:
        with open(fname, encoding="utf-8", errors="surrogateescape", newline="") as f:
            lines = []
            for line in f:
                if line.endswith("\n"):
                    line = line[:-1]
                if line.endswith("\r"):
                    line = line[:-1]
                lines.append(line)
            return lines
    except OSError:
        return []