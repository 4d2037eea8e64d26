"""Helpers for inspecting large JSON files."""

from __future__ import annotations

from pathlib import Path


def print_json_segment(file_path: str | Path, start: int, length: int) -> str:
    """Print and return ``length`` bytes of ``file_path`` starting at ``start``."""
    with open(file_path, "rb") as handle:
        handle.seek(start)
        chunk = handle.read(length)
    if len(chunk) != length:
        raise EOFError(f"expected {length} bytes at offset {start}, got {len(chunk)}")
    segment = chunk.decode("utf-8", errors="replace")
    print(segment)
    return segment