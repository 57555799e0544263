"""Logger setup and fixed-format operation log lines."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tradegate.domain.models import Mode

REDACTED_KEYS = frozenset({"api_key", "secret_key", "apca-api-key-id", "apca-api-secret-key"})


def setup_logger(log_level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure and return the ``tradegate`` logger.

    Logs are written to console, plus an optional file if ``log_file`` is set.
    """
    logger = logging.getLogger("tradegate")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class OperationLogger:
    """One line per gateway call: ``operation | MODE | key value ...``."""

    def __init__(self, name: str = "tradegate.gateway") -> None:
        self._logger = logging.getLogger(name)

    def operation(
        self,
        operation: str,
        mode: Mode,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        self._logger.info(self._line(operation, mode, details))

    def destructive(
        self,
        operation: str,
        mode: Mode,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        self._logger.warning("%s | bulk", self._line(operation, mode, details))

    def failure(self, operation: str, mode: Mode | None, error: Exception) -> None:
        label = mode.label if mode is not None else "UNRESOLVED"
        self._logger.error("%s | %s | %s: %s", operation, label, type(error).__name__, error)

    @staticmethod
    def _line(operation: str, mode: Mode, details: Mapping[str, Any] | None) -> str:
        parts = [operation, mode.label]
        for key, value in (details or {}).items():
            if value is None or key.lower() in REDACTED_KEYS:
                continue
            parts.append(f"{key} {value}")
        return " | ".join(parts)
