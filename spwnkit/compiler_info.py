"""Source positions and the compile-time context attached to errors."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

FileRange = tuple[int, int]


@dataclass(frozen=True)
class CodeArea:
    """A span of characters in a source.

    ``file`` is a :class:`~pathlib.Path` for a script on disk; any other
    value (such as a string) names a source that is not a file.
    """

    file: Path | str = field(default_factory=Path)
    pos: FileRange = (0, 0)

    def start(self) -> int:
        return self.pos[0]

    def end(self) -> int:
        return self.pos[1]


@dataclass
class CompilerInfo:
    """Where the compiler is and how it got there."""

    depth: int = 0
    call_stack: list[CodeArea] = field(default_factory=list)
    current_module: str = ""  # empty means a script
    position: CodeArea = field(default_factory=CodeArea)

    @classmethod
    def from_area(cls, area: CodeArea) -> CompilerInfo:
        return cls(position=area)

    def with_area(self, area: CodeArea) -> CompilerInfo:
        """Return a copy positioned at ``area``."""
        return replace(self, call_stack=list(self.call_stack), position=area)

    def add_to_call_stack(self, new: CodeArea) -> None:
        """Push the current position onto the call stack and move to ``new``."""
        self.call_stack.append(self.position)
        self.position = new