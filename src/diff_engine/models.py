"""
Pydantic models for structural diffs.

A diff has two sides: what `before` held that `after` no longer holds
(removed or changed) and what `after` holds that `before` did not
(added or changed). Changed nested mappings surface only their changed
leaves, wrapped by their parent keys.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DiffResult(BaseModel):
    """
    Two-sided structural diff.

    Examples:
        {"name": "A", "age": 1} -> {"name": "B", "age": 1, "city": "X"}:
            removed_or_changed = {"name": "A"}
            added_or_changed = {"name": "B", "city": "X"}
    """

    model_config = ConfigDict(frozen=True)

    removed_or_changed: dict[str, Any] = Field(
        default_factory=dict,
        description="Keys/subtrees of `before` that differ or are absent in `after`"
    )
    added_or_changed: dict[str, Any] = Field(
        default_factory=dict,
        description="Keys/subtrees of `after` that differ or are absent in `before`"
    )

    @property
    def is_empty(self) -> bool:
        """True when the two snapshots are equal."""
        return not self.removed_or_changed and not self.added_or_changed

    def to_pair(self) -> list[dict[str, Any]]:
        """Storage form: [removed_or_changed, added_or_changed]."""
        return [self.removed_or_changed, self.added_or_changed]

    @classmethod
    def from_pair(cls, pair: Any) -> "DiffResult":
        """
        Build from the storage form.

        Anything that is not a two-element sequence of mappings decodes
        to an empty diff.
        """
        if (
            isinstance(pair, (list, tuple))
            and len(pair) == 2
            and all(isinstance(side, dict) for side in pair)
        ):
            return cls(removed_or_changed=pair[0], added_or_changed=pair[1])
        return cls()
