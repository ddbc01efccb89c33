from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..errors import BridgeError
from .logging import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a user-facing bridge operation: a flag plus a readable message."""

    success: bool
    message: str
    data: Any = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, message: str = "Operation was successful", data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str, code: Optional[str] = None) -> "OperationResult":
        return cls(success=False, message=message, code=code)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": "ok" if self.success else "error", "message": self.message}
        if self.code:
            out["code"] = self.code
        return out


def operation(fn: Callable[..., Any]) -> Callable[..., OperationResult]:
    """Decorator normalizing a pipeline entry point into an OperationResult.

    - a returned OperationResult passes through unchanged,
    - any other return value is wrapped with OperationResult.ok(data=...),
    - BridgeError becomes OperationResult.error(message, code),
    - any other exception is logged with its traceback and reported as an error.
    """

    name = getattr(fn, "__name__", "operation")

    @functools.wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> OperationResult:
        try:
            result = fn(*args, **kwargs)
        except BridgeError as e:
            log.error("%s failed: %s", name, e.message)
            return OperationResult.error(e.message, code=e.code)
        except Exception as e:  # noqa: BLE001
            log.exception("%s failed unexpectedly", name)
            return OperationResult.error(f"{name}: {e}", code="unexpected")
        if isinstance(result, OperationResult):
            return result
        return OperationResult.ok(data=result)

    return _wrapped
