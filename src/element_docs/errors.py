"""Exception taxonomy for model loading and hierarchy resolution.

Every error here is fatal for a compilation run: it signals a malformed input
model rather than a transient condition, so callers abort instead of skipping
the offending element.
"""

from __future__ import annotations

from typing import List, Sequence


class ModelError(ValueError):
    """Base class for malformed-model errors."""


class DuplicateFqnError(ModelError):
    """Two data elements share the same fully-qualified name."""

    def __init__(self, fqn: str) -> None:
        self.fqn = fqn
        super().__init__(f"Duplicate data element fqn: '{fqn}'")


class UnresolvedParentError(ModelError):
    """An element extends a parent fqn that is not in the store."""

    def __init__(self, fqn: str, parent_fqn: str) -> None:
        self.fqn = fqn
        self.parent_fqn = parent_fqn
        super().__init__(
            f"Data element '{fqn}' extends unknown parent '{parent_fqn}'"
        )


class CyclicHierarchyError(ModelError):
    """The parent chain of an element revisits an fqn."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle: List[str] = list(cycle)
        super().__init__(
            "Cyclic element hierarchy: " + " -> ".join(self.cycle)
        )


class ModelFrozenError(ModelError, RuntimeError):
    """A write was attempted after the model was resolved."""
