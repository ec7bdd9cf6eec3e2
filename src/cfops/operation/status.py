"""Completion status of a long-running operation, independent of its wire shape."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperationState(str, Enum):
    """Terminal and non-terminal operation states."""

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass(slots=True, frozen=True)
class ErrorDetail:
    """Failure detail reported by the platform for a failed operation."""

    code: Optional[int] = None
    description: str = ""
    error_code: Optional[str] = None


@dataclass(slots=True, frozen=True)
class OperationStatus:
    """
    Pending, Succeeded, or Failed(detail).

    Use the pending()/succeeded()/failed() constructors instead of building
    the record by hand.
    """

    state: OperationState
    detail: Optional[ErrorDetail] = None

    @classmethod
    def pending(cls) -> "OperationStatus":
        return cls(OperationState.PENDING)

    @classmethod
    def succeeded(cls) -> "OperationStatus":
        return cls(OperationState.SUCCEEDED)

    @classmethod
    def failed(cls, detail: ErrorDetail) -> "OperationStatus":
        return cls(OperationState.FAILED, detail)

    @property
    def is_terminal(self) -> bool:
        return self.state is not OperationState.PENDING
