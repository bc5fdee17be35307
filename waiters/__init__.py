"""
Readiness waits for asynchronous cloud control planes.

A wait polls a describe call until a completion rule holds, optionally sleeps
a stabilization buffer, and hands a stable value to dependent resources:

- **Reconciler**: the poll loop (``waiters._reconcile``), independent of
  any cloud or of Pulumi.
- **CoverageRule** / **AllMatchRule**: "N distinct keys present" and "every
  entry reports the required state" (``waiters._predicates``).
- **LambdaEniWait** / **EfsMountTargetWait**: Pulumi dynamic resources that
  run a wait during ``pulumi up`` against EC2 and EFS (``waiters.aws``).
"""

from waiters._predicates import AllMatchRule, CoverageRule, ordered_values
from waiters._reconcile import Phase, ReconciliationResult, Reconciler, WaitTiming
from waiters.aws import (
    EfsMountTargetWait,
    EniWaitSpec,
    LambdaEniWait,
    MountTargetWaitSpec,
    wait_for_enis,
    wait_for_mount_targets,
)
from waiters.errors import ProbeError, WaitCancelledError, WaitError, WaitTimeoutError

__all__ = [
    "AllMatchRule",
    "CoverageRule",
    "EfsMountTargetWait",
    "EniWaitSpec",
    "LambdaEniWait",
    "MountTargetWaitSpec",
    "Phase",
    "ProbeError",
    "ReconciliationResult",
    "Reconciler",
    "WaitCancelledError",
    "WaitError",
    "WaitTiming",
    "WaitTimeoutError",
    "ordered_values",
    "wait_for_enis",
    "wait_for_mount_targets",
]
