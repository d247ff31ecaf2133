"""Monitoring package."""

from .logger import setup_logging, APILogger, OperationLogger

__all__ = ["setup_logging", "APILogger", "OperationLogger"]
