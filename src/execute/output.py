"""Console output for concurrent build subprocesses."""

from __future__ import annotations

import sys
import threading
from typing import TYPE_CHECKING, Literal, TextIO

from rules.config import DEFAULT_INTERESTING_MARKERS
from utils import timestamp

if TYPE_CHECKING:
    from collections.abc import Sequence

StreamName = Literal["stdout", "stderr"]

BLUE = "\x1b[34m"
GREEN = "\x1b[32m"
MAGENTA = "\x1b[35m"
CYAN = "\x1b[36m"
YELLOW = "\x1b[33m"
RED = "\x1b[31m"
BOLD = "\x1b[1m"
RESET = "\x1b[0m"

MODULE_COLORS = (BLUE, GREEN, MAGENTA, CYAN, YELLOW)


def is_interesting(line: str, markers: Sequence[str] = DEFAULT_INTERESTING_MARKERS) -> bool:
    return any(marker in line for marker in markers)


class Console:
    """Line-oriented writer shared by concurrent builds.

    Each line is written whole under a lock; lines from different modules
    interleave freely.
    """

    def __init__(self, stream: TextIO | None = None, *, color: bool | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        if color is None:
            isatty = getattr(self.stream, "isatty", None)
            color = bool(isatty and isatty())
        self.color = color
        self._lock = threading.Lock()

    def paint(self, text: str, code: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{RESET}"

    def write_line(self, text: str = "") -> None:
        with self._lock:
            self.stream.write(text + "\n")
            self.stream.flush()

    def formatter(
        self,
        label: str,
        index: int,
        markers: Sequence[str] = DEFAULT_INTERESTING_MARKERS,
    ) -> ModuleFormatter:
        return ModuleFormatter(
            label=label,
            color_code=MODULE_COLORS[index % len(MODULE_COLORS)],
            console=self,
            markers=tuple(markers),
        )


class ModuleFormatter:
    """Prefixes and filters the output of one build task."""

    def __init__(
        self,
        *,
        label: str,
        color_code: str,
        console: Console,
        markers: tuple[str, ...],
    ) -> None:
        self.label = label
        self.color_code = color_code
        self.console = console
        self.markers = markers

    @property
    def prefix(self) -> str:
        return self.console.paint(f"[{self.label}]", self.color_code)

    def emit(self, message: str) -> None:
        self.console.write_line(f"{self.prefix} {timestamp()} {message}")

    def handle_line(self, line: str, stream: StreamName) -> None:
        """Display one subprocess line: stderr always, stdout only when interesting."""
        text = line.strip()
        if not text:
            return
        if stream == "stderr":
            self.emit(self.console.paint(text, RED))
        elif is_interesting(text, self.markers):
            self.emit(text)


__all__ = [
    "MODULE_COLORS",
    "Console",
    "ModuleFormatter",
    "is_interesting",
]
