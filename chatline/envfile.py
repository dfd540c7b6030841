"""Minimal reader for ``KEY=value`` environment files."""

from __future__ import annotations

import os


def split_pair(line: str, separator: str) -> tuple[str, str]:
    """Split ``line`` at the first ``separator`` into a (key, value) pair."""
    key, found, value = line.partition(separator)
    if not found:
        raise ValueError(f"separator {separator!r} not found in {line!r}")
    return key, value


def dotenv_get(key: str, path: str | os.PathLike[str] = ".env") -> str | None:
    """Return the value of the first ``key`` entry in the file, or None.

    Raises FileNotFoundError (or another OSError) if the file can't be opened.
    """
    with open(path, encoding="utf-8") as file:
        for line in file:
            line = line.rstrip("\r\n")
            try:
                name, value = split_pair(line, "=")
            except ValueError:
                continue
            if name == key:
                return value
    return None