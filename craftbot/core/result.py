"""Uniform return value for operations and operator commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Result:
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **data: Any) -> "Result":
        return cls(True, message, dict(data))

    @classmethod
    def fail(cls, message: str, **data: Any) -> "Result":
        return cls(False, message, dict(data))

    def __bool__(self) -> bool:
        return self.success


__all__ = ["Result"]
