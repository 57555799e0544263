"""Logging helpers."""

from .logger import OperationLogger, setup_logger

__all__ = ["OperationLogger", "setup_logger"]
