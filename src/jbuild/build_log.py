"""Append-only build history (jbuild.log).

Each build adds one line:
    2026-10-19 14:02:11 -> BUILD SUCCESSFUL TOOK 3.214 SECONDS
    2026-10-19 14:05:40 -> BUILD FAILED
"""

import logging
from pathlib import Path

LOGGER_NAME = "jbuild.history"


class BuildLog:
    """Writes build outcomes to a log file through a dedicated logger."""

    def __init__(self, log_file: Path):
        self.log_file = Path(log_file)

    def _write(self, message: str) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.INFO)
        # History lines must not show up on the console handlers
        logger.propagate = False

        handler = logging.FileHandler(str(self.log_file), mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s -> %(message)s", "%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        try:
            logger.info(message)
        finally:
            logger.removeHandler(handler)
            handler.close()

    def record_success(self, seconds: float) -> None:
        self._write(f"BUILD SUCCESSFUL TOOK {seconds:.3f} SECONDS")

    def record_failure(self) -> None:
        self._write("BUILD FAILED")
