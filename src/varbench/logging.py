"""Logging for varbench.

Two streams share the ``varbench`` logger tree:

- progress messages (``varbench.<module>``), shown on the console at a
  level chosen by ``--verbose``/``--quiet``;
- captured build-tool output (``varbench.buildlog``), one record per line,
  tagged with the component and variant it came from. It always reaches
  the log file but only reaches the console with ``--verbose``, since the
  harness reports build failures itself.
"""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "varbench"
BUILD_OUTPUT_LOGGER = f"{ROOT_LOGGER}.buildlog"

_CONSOLE_LEVELS = {"verbose": logging.DEBUG, "quiet": logging.WARNING, "normal": logging.INFO}


class _BuildOutputFilter(logging.Filter):
    """Drop captured build output from a handler unless *show* is set."""

    def __init__(self, show: bool) -> None:
        super().__init__()
        self.show = show

    def filter(self, record: logging.LogRecord) -> bool:
        return self.show or not record.name.startswith(BUILD_OUTPUT_LOGGER)


class _HarnessFormatter(logging.Formatter):
    """Prefix build-output lines with their origin instead of a level."""

    def __init__(self, fmt: str, *, timestamps: bool) -> None:
        super().__init__(fmt)
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        origin = getattr(record, "origin", None)
        if origin is None:
            return super().format(record)
        line = f"[{origin}] {record.getMessage()}"
        if self.timestamps:
            return f"{self.formatTime(record)} {line}"
        return line


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Install the console handler and, with *log_file*, a DEBUG file handler.

    *verbose* wins over *quiet*. Calling this again replaces the handlers
    from the previous call.
    """
    mode = "verbose" if verbose else "quiet" if quiet else "normal"
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(_CONSOLE_LEVELS[mode])
    console.addFilter(_BuildOutputFilter(show=verbose))
    console.setFormatter(_HarnessFormatter("%(levelname)-8s %(message)s", timestamps=False))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(
            _HarnessFormatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s", timestamps=True
            )
        )
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``varbench.<name>`` logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_build_output(component: str, variant: str, output: str) -> None:
    """Record captured build-tool output line by line."""
    logger = logging.getLogger(BUILD_OUTPUT_LOGGER)
    origin = f"{component}/{variant}"
    for line in output.splitlines():
        if line.strip():
            logger.info(line, extra={"origin": origin})
