"""
Poll loop that drives a prober and a completion rule to a terminal state.

A run moves ``POLLING -> SATISFIED -> [STABILIZING ->] DONE`` on success, or
ends in ``TIMED_OUT`` / ``CANCELLED``. The deadline is fixed when the run
starts and is never extended by slow probes. The loop suspends only in the
sleep between polls, the retry backoff and the stabilization delay; all go
through a ``Waiter`` (a ``threading.Event`` by default) so ``cancel()``
unblocks them immediately. A probe error aborts the run unless
``probe_attempts`` allows retries; retries stop once a poll interval or the
deadline is spent, whichever comes first.
"""

import logging
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_any,
)

from waiters._predicates import CompletionRule, ObservedState
from waiters.errors import ProbeError, WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Prober = Callable[[], ObservedState]


class Phase(str, Enum):
    POLLING = "polling"
    SATISFIED = "satisfied"
    STABILIZING = "stabilizing"
    DONE = "done"
    TIMED_OUT = "timed out"
    CANCELLED = "cancelled"


class Waiter(Protocol):
    """Interruptible sleep; ``wait`` returns True when cancellation was requested."""

    def wait(self, timeout: float | None = None) -> bool: ...

    def set(self) -> None: ...

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class WaitTiming:
    """
    Time bounds for one reconciliation run, all in seconds.

    Attributes:
        poll_interval: Sleep between probes.
        timeout: Wall-clock budget measured from the start of the run.
        stabilization_delay: Extra sleep after the rule first holds, without
            probing again.
        jitter: Fraction of ``poll_interval`` (0 <= jitter < 1) to randomize
            each sleep by, so concurrent waits do not probe in lockstep.
    """

    poll_interval: float = 5.0
    timeout: float = 300.0
    stabilization_delay: float = 0.0
    jitter: float = 0.0

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.stabilization_delay < 0:
            raise ValueError(
                f"stabilization_delay must be >= 0, got {self.stabilization_delay}"
            )
        if not 0 <= self.jitter < 1:
            raise ValueError(f"jitter must be in [0, 1), got {self.jitter}")

    @property
    def probe_timeout(self) -> float:
        """Per-call budget for one probe, kept below the poll interval."""
        return min(30.0, self.poll_interval * 0.8)


@dataclass(frozen=True)
class ReconciliationResult(Generic[T]):
    value: T
    state: dict[str, str]
    polls: int
    elapsed: float


class Reconciler(Generic[T]):
    """
    One-shot readiness wait.

    Args:
        description: Human-readable name of what is awaited, used in logs and
            errors (e.g. "Lambda ENIs for sg-123").
        prober: Zero-argument callable returning a fresh ObservedState.
        rule: Completion rule evaluated against every snapshot.
        projection: Maps the final snapshot to the value handed to callers.
        timing: Poll interval, timeout, stabilization delay and jitter.
        clock: Monotonic time source in seconds.
        waiter: Interruptible sleep; defaults to a new ``threading.Event``.
        rng: Random source for jitter.
        probe_attempts: Calls allowed per poll when the prober raises
            ``ProbeError``; 1 means the first failure aborts the run.
        probe_retry_wait: Seconds between those calls.
    """

    def __init__(
        self,
        description: str,
        prober: Prober,
        rule: CompletionRule,
        projection: Callable[[ObservedState], T],
        timing: WaitTiming,
        *,
        clock: Callable[[], float] = time.monotonic,
        waiter: Waiter | None = None,
        rng: random.Random | None = None,
        probe_attempts: int = 1,
        probe_retry_wait: float = 1.0,
    ):
        if probe_attempts < 1:
            raise ValueError(f"probe_attempts must be >= 1, got {probe_attempts}")
        self.description = description
        self.timing = timing
        self.phase: Phase | None = None
        self._prober = prober
        self._rule = rule
        self._projection = projection
        self._clock = clock
        self._waiter: Waiter = waiter if waiter is not None else threading.Event()
        self._rng = rng or random.Random()
        self._probe_attempts = probe_attempts
        self._probe_retry_wait = probe_retry_wait

    def cancel(self) -> None:
        """Request cancellation; safe to call from another thread."""
        self._waiter.set()

    def run(self) -> ReconciliationResult[T]:
        """
        Poll until the rule holds, then stabilize and project the result.

        Raises:
            ProbeError: The prober failed and no retry was left; propagated as-is.
            WaitTimeoutError: The deadline passed without the rule holding.
            WaitCancelledError: ``cancel()`` was called before completion.
        """
        timing = self.timing
        start = self._clock()
        deadline = start + timing.timeout
        polls = 0
        self._enter(Phase.POLLING)
        logger.info(
            "Waiting for %s (timeout %gs, polling every %gs)",
            self.description,
            timing.timeout,
            timing.poll_interval,
        )

        while True:
            self._check_cancelled(start)
            state = self._probe(start, deadline)
            polls += 1
            if self._rule.is_satisfied(state):
                break

            now = self._clock()
            summary = self._rule.describe(state)
            if now >= deadline:
                self._enter(Phase.TIMED_OUT)
                logger.error("Timeout waiting for %s. Last state: %s", self.description, summary)
                raise WaitTimeoutError(
                    self.description, summary, state, now - start, polls
                )

            delay = min(self._next_interval(), deadline - now)
            logger.info(
                "Waiting for %s: %s. Retrying in %.0fs", self.description, summary, delay
            )
            self._sleep(delay, start)

        self._enter(Phase.SATISFIED)
        logger.info("%s ready: %s", self.description, self._rule.describe(state))

        if timing.stabilization_delay > 0:
            self._enter(Phase.STABILIZING)
            logger.info(
                "Adding %gs stabilization buffer for %s",
                timing.stabilization_delay,
                self.description,
            )
            self._sleep(timing.stabilization_delay, start)

        value = self._projection(state)
        self._enter(Phase.DONE)
        elapsed = self._clock() - start
        logger.info("%s done after %.0fs (%d polls)", self.description, elapsed, polls)
        return ReconciliationResult(value=value, state=state, polls=polls, elapsed=elapsed)

    def _probe(self, start: float, deadline: float) -> dict[str, str]:
        if self._probe_attempts == 1:
            return dict(self._prober())

        # Retries never outlive one poll interval or the run deadline.
        budget_end = min(self._clock() + self.timing.poll_interval, deadline)

        def _out_of_budget(_retry_state) -> bool:
            return self._clock() >= budget_end

        def _backoff(_retry_state) -> float:
            return max(0.0, min(self._probe_retry_wait, budget_end - self._clock()))

        retrying = Retrying(
            stop=stop_any(stop_after_attempt(self._probe_attempts), _out_of_budget),
            wait=_backoff,
            retry=retry_if_exception_type(ProbeError),
            sleep=lambda seconds: self._sleep(seconds, start),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return dict(retrying(self._prober))

    def _enter(self, phase: Phase) -> None:
        logger.debug("%s: %s -> %s", self.description, self.phase, phase.value)
        self.phase = phase

    def _next_interval(self) -> float:
        interval = self.timing.poll_interval
        if self.timing.jitter:
            interval *= 1 + self._rng.uniform(-self.timing.jitter, self.timing.jitter)
        return interval

    def _sleep(self, seconds: float, start: float) -> None:
        if self._waiter.wait(max(seconds, 0.0)):
            self._cancelled(start)

    def _check_cancelled(self, start: float) -> None:
        if self._waiter.is_set():
            self._cancelled(start)

    def _cancelled(self, start: float) -> None:
        phase = self.phase.value if self.phase else "starting"
        self._enter(Phase.CANCELLED)
        elapsed = self._clock() - start
        logger.warning("Wait for %s cancelled while %s", self.description, phase)
        raise WaitCancelledError(self.description, phase, elapsed)
