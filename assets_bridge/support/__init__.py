"""Shared infrastructure: logging and result normalization."""

from .logging import configure, get_logger
from .results import OperationResult, operation

__all__ = [
    "configure",
    "get_logger",
    "OperationResult",
    "operation",
]
