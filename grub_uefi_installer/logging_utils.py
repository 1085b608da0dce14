from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .style import RED, YELLOW, OutputStyle

DEFAULT_LOG_PATH = "/var/log/grub-uefi-installer.log"


class ConsoleFormatter(logging.Formatter):
    """Short console lines; warnings and errors colored when the style allows it."""

    def __init__(self, style: OutputStyle):
        super().__init__(fmt="%(levelname)s: %(message)s")
        self.output_style = style

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if record.levelno >= logging.ERROR:
            return self.output_style.paint(text, RED)
        if record.levelno >= logging.WARNING:
            return self.output_style.paint(text, YELLOW)
        return text


def level_for(quiet: bool = False, verbose: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    log_path: Optional[str] = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
    style: Optional[OutputStyle] = None,
) -> Optional[str]:
    """Configure logging.

    Diagnostics go to stderr so stdout stays reserved for listings and
    pretend traces.

    Notes:
    - In some live environments, writing to /var/log may not be permitted.
      We still *attempt* to write there first; if it fails, we fall back to
      a local file in the working directory.
    - log_path=None disables the file handler (used by the list command).

    Returns the actual file path being used, if any.
    """

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_grub_uefi_configured", False):
        return getattr(logger, "_grub_uefi_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            chosen_path = log_path
        except OSError:
            # Fall back to a writable location.
            fallback = str(Path.cwd() / "grub-uefi-installer.log")
            file_handler = logging.FileHandler(fallback)
            chosen_path = fallback
        file_handler.setFormatter(fmt)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ConsoleFormatter(style or OutputStyle()))
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_grub_uefi_configured", True)
    setattr(logger, "_grub_uefi_log_path", chosen_path)

    logging.getLogger(__name__).debug("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
