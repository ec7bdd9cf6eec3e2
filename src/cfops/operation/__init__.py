"""Long-running operation status, adapters and waiter."""

from __future__ import annotations

from .adapters import from_last_operation, from_package, from_v2_job, from_v3_job
from .status import ErrorDetail, OperationState, OperationStatus
from .waiter import (
    job_id_from_location,
    wait_for_completion,
    wait_for_job_v2,
    wait_for_job_v3,
    wait_for_last_operation,
    wait_for_resource,
)

__all__ = [
    "ErrorDetail",
    "OperationState",
    "OperationStatus",
    "from_last_operation",
    "from_package",
    "from_v2_job",
    "from_v3_job",
    "job_id_from_location",
    "wait_for_completion",
    "wait_for_job_v2",
    "wait_for_job_v3",
    "wait_for_last_operation",
    "wait_for_resource",
]
