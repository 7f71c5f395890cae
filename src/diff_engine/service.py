"""
Structural diff service.

Computes the two-sided diff between two nested mappings, and applies or
inverts such diffs. All functions are pure: inputs are never mutated and
every returned structure is a fresh copy.
"""

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from .models import DiffResult


def values_equal(a: Any, b: Any) -> bool:
    """
    Deep value equality.

    Mapping key order is irrelevant. Unlike plain `==`, booleans never
    compare equal to numbers (True != 1), at any depth.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


def _diff(
    before: Mapping[str, Any],
    after: Mapping[str, Any]
) -> tuple[dict[str, Any], dict[str, Any]]:
    removed: dict[str, Any] = {}
    added: dict[str, Any] = {}

    for key, value in before.items():
        if key not in after:
            removed[key] = deepcopy(value)
            continue

        other = after[key]
        if isinstance(value, Mapping):
            if not isinstance(other, Mapping):
                # Type change: swap whole values, never diff partially
                removed[key] = deepcopy(value)
                added[key] = deepcopy(other)
                continue
            sub_removed, sub_added = _diff(value, other)
            if sub_removed:
                removed[key] = sub_removed
            if sub_added:
                added[key] = sub_added
        elif not values_equal(value, other):
            removed[key] = deepcopy(value)
            added[key] = deepcopy(other)

    for key, value in after.items():
        if key not in before:
            added[key] = deepcopy(value)

    return removed, added


def compute_diff(
    before: Mapping[str, Any],
    after: Mapping[str, Any]
) -> DiffResult:
    """
    Compute the structural diff between two snapshots.

    Args:
        before: The earlier snapshot
        after: The later snapshot

    Returns:
        DiffResult with both sides; empty on both when nothing changed

    Example:
        >>> diff = compute_diff({"addr": {"city": "X"}}, {"addr": {"city": "Y"}})
        >>> diff.removed_or_changed
        {'addr': {'city': 'X'}}
        >>> diff.added_or_changed
        {'addr': {'city': 'Y'}}
    """
    removed, added = _diff(before, after)
    return DiffResult(removed_or_changed=removed, added_or_changed=added)


def _apply(
    target: dict[str, Any],
    removed: Mapping[str, Any],
    added: Mapping[str, Any]
) -> None:
    for key, value in removed.items():
        if key in added or key not in target:
            continue
        current = target[key]
        if (
            isinstance(value, Mapping)
            and isinstance(current, Mapping)
            and not values_equal(value, current)
        ):
            # Only part of the nested mapping was removed
            _apply(current, value, {})
        else:
            del target[key]

    for key, value in added.items():
        current = target.get(key)
        old = removed.get(key)
        if (
            isinstance(value, Mapping)
            and isinstance(current, Mapping)
            and (old is None or isinstance(old, Mapping))
        ):
            _apply(current, old or {}, value)
        else:
            target[key] = deepcopy(value)


def apply_diff(
    before: Mapping[str, Any],
    diff: DiffResult
) -> dict[str, Any]:
    """
    Rebuild the later snapshot from the earlier one and their diff.

    Keys on the added side are overwritten (nested mappings are merged);
    keys present only on the removed side are deleted.

    A nested mapping emptied of all its keys cannot be told apart from
    a removed one; it is reconstructed as removed.
    """
    result = deepcopy(dict(before))
    _apply(result, diff.removed_or_changed, diff.added_or_changed)
    return result


def invert_diff(diff: DiffResult) -> DiffResult:
    """Swap the diff's sides, giving the diff from `after` back to `before`."""
    return DiffResult(
        removed_or_changed=deepcopy(diff.added_or_changed),
        added_or_changed=deepcopy(diff.removed_or_changed),
    )
