from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional, TextIO

BOLD = "\033[1m"
RED = "\033[91m"
YELLOW = "\033[93m"
ENDC = "\033[0m"


@dataclass(frozen=True)
class OutputStyle:
    """Presentation settings threaded to whoever writes to the terminal."""

    color: bool = False

    def paint(self, text: str, code: str) -> str:
        if not self.color or not text:
            return text
        return f"{code}{text}{ENDC}"

    def bold(self, text: str) -> str:
        return self.paint(text, BOLD)


def detect_style(no_color: bool = False, stream: Optional[TextIO] = None) -> OutputStyle:
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    return OutputStyle(color=(not no_color) and bool(isatty and isatty()))
