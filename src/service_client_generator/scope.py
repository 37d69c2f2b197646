"""Line buffer with indentation levels, used to assemble generated modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import override

INDENT = "    "


class Scope:
    """A block of generated code.

    Lines are added relative to the current indentation level; `indented()` opens a nested block,
    e.g. a class or function body.
    """

    def __init__(self, name: str = "", lines: list[str] | None = None):
        self.name = name
        self.lines: list[str] = lines if lines is not None else []
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    def add(self, *lines: str) -> None:
        """Add lines at the current indentation level; empty lines stay empty."""
        prefix = INDENT * self._depth
        for line in lines:
            self.lines.append(f"{prefix}{line}" if line else "")

    def extend(self, lines: list[str]) -> None:
        self.add(*lines)

    def blank(self, count: int = 1) -> None:
        """Add empty lines."""
        for _ in range(count):
            self.lines.append("")

    @contextmanager
    def indented(self, heading: str | None = None) -> Iterator[Scope]:
        """Open a nested block.

        If the block ends up empty, a `pass` statement is inserted to keep the output valid Python.

        Args:
            heading (str | None): The line that opens the block, e.g. a class declaration.
        """
        if heading is not None:
            self.add(heading)
        start = len(self.lines)
        self._depth += 1
        try:
            yield self
        finally:
            body = [line.strip() for line in self.lines[start:]]
            if not any(line and not line.startswith("#") for line in body):
                self.add("pass")
            self._depth -= 1

    def dumps(self) -> str:
        return "\n".join(self.lines)

    @override
    def __repr__(self) -> str:
        return f"Scope(name={self.name!r}, lines={len(self.lines)}, depth={self._depth})"
