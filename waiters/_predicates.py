"""
Completion rules and result projections for readiness waits.

Pure helpers, testable without Pulumi or AWS. An observed state is a plain
mapping from a stable key (subnet ID, mount-target ID) to a value (the
resolved resource ID, or a lifecycle state). Each probe produces a fresh
snapshot; nothing here accumulates across polls.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

ObservedState = Mapping[str, str]


class CompletionRule(Protocol):
    """Decides whether a snapshot satisfies a wait and summarizes progress."""

    def is_satisfied(self, state: ObservedState) -> bool: ...

    def describe(self, state: ObservedState) -> str: ...


def first_seen(pairs: Iterable[tuple[str | None, str | None]]) -> dict[str, str]:
    """
    Fold (key, value) pairs into a snapshot, keeping the first value per key.

    Pairs with a missing key or value are skipped. Later duplicates of a key
    are ignored, so the API's natural order decides which value wins. This is
    a simplification: a subnet can briefly hold two interfaces while one is
    being replaced, and only the first is reported.
    """
    state: dict[str, str] = {}
    for key, value in pairs:
        if key and value and key not in state:
            state[key] = value
    return state


def format_pairs(state: ObservedState, sep: str = ":") -> str:
    """Render a snapshot as ``key:value, key:value`` in insertion order."""
    return ", ".join(f"{key}{sep}{value}" for key, value in state.items())


@dataclass(frozen=True)
class CoverageRule:
    """
    Satisfied once at least ``expected_count`` distinct keys are present.

    Used for "one network interface per subnet": keys are subnet IDs and the
    rule does not care which interface landed in each.
    """

    expected_count: int
    noun: str = "keys"

    def __post_init__(self):
        if self.expected_count < 0:
            raise ValueError(
                f"expected_count must be >= 0, got {self.expected_count}"
            )

    def is_satisfied(self, state: ObservedState) -> bool:
        return len(state) >= self.expected_count

    def describe(self, state: ObservedState) -> str:
        summary = f"{len(state)}/{self.expected_count} {self.noun}"
        return f"{summary}: {format_pairs(state)}" if state else summary


@dataclass(frozen=True)
class AllMatchRule:
    """
    Satisfied when every entry reports ``required`` and there is at least one.

    An empty snapshot never counts as done: a probe that finds nothing must
    not look like a probe that found everything ready.
    """

    required: str
    noun: str = "entries"

    def is_satisfied(self, state: ObservedState) -> bool:
        return bool(state) and all(value == self.required for value in state.values())

    def describe(self, state: ObservedState) -> str:
        if not state:
            return f"no {self.noun} found"
        ready = sum(1 for value in state.values() if value == self.required)
        return f"{ready}/{len(state)} {self.required}: {format_pairs(state, ': ')}"


def ordered_values(state: ObservedState, key_order: Sequence[str] = ()) -> list[str]:
    """
    Project a snapshot to its values in a stable order.

    Keys listed in ``key_order`` come first, in that order; any other keys
    follow sorted. The same snapshot always yields the same list, so a
    re-run does not reorder downstream resources.
    """
    ordered = [state[key] for key in dict.fromkeys(key_order) if key in state]
    listed = set(key_order)
    ordered.extend(state[key] for key in sorted(state) if key not in listed)
    return ordered
