"""
Failure outcomes of a readiness wait.

A wait ends in exactly one of three ways besides success: the control-plane
read failed (``ProbeError``), the deadline passed before the condition held
(``WaitTimeoutError``), or someone stopped the run (``WaitCancelledError``).
All three derive from ``WaitError`` so callers can catch the family, and each
keeps enough context for an operator to see what was still missing.
"""

from collections.abc import Mapping


class WaitError(Exception):
    """Base class for every readiness-wait failure."""


class ProbeError(WaitError):
    """A single describe call against the control plane failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class WaitTimeoutError(WaitError):
    """The deadline elapsed and the completion rule was never satisfied."""

    def __init__(
        self,
        description: str,
        summary: str,
        last_state: Mapping[str, str],
        elapsed: float,
        polls: int,
    ):
        super().__init__(
            f"Timeout waiting for {description} after {elapsed:.0f}s "
            f"({polls} polls). Last state: {summary}"
        )
        self.description = description
        self.summary = summary
        self.last_state = dict(last_state)
        self.elapsed = elapsed
        self.polls = polls


class WaitCancelledError(WaitError):
    """The run was stopped from outside before it could finish."""

    def __init__(self, description: str, phase: str, elapsed: float):
        super().__init__(
            f"Wait for {description} cancelled while {phase} after {elapsed:.0f}s"
        )
        self.description = description
        self.phase = phase
        self.elapsed = elapsed
