"""Element store and inheritance ("flatten") resolution.

The store keeps every :class:`~element_docs.models.ElementDefinition` keyed by
fqn in ingestion order. :meth:`ElementStore.flatten` walks each element's
parent chain once, recording the ancestor list (``hierarchy``) and merging
field declarations root-to-leaf so that the most specific declaration of a
field name wins.

Merge policy:
    A field re-declared by a descendant replaces the inherited entry at the
    position where the ancestor first declared it. Fields first declared by a
    descendant are appended after the inherited ones. Every merged entry is a
    fresh copy tagged with ``declared_by`` (the element whose declaration won).

Example:
    from element_docs.elements import ElementStore
    from element_docs.models import ElementDefinition

    store = ElementStore()
    store.add(ElementDefinition.from_dict({"fqn": "onc.Tumor", "fields": [{"name": "size"}]}))
    store.add(ElementDefinition.from_dict({
        "fqn": "onc.MalignantTumor", "parentFqn": "onc.Tumor", "fields": [{"name": "grade"}],
    }))
    store.flatten()
    store.get("onc.MalignantTumor").hierarchy   # ['onc.Tumor']
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import (
    CyclicHierarchyError,
    DuplicateFqnError,
    ModelFrozenError,
    UnresolvedParentError,
)
from .models import ElementDefinition, FieldDefinition


class ElementStore:
    """Fqn-keyed collection of element definitions.

    Args:
        logger: Logger used for resolution progress; defaults to the module
            logger.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._elements: Dict[str, ElementDefinition] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, fqn: object) -> bool:
        return fqn in self._elements

    def __iter__(self) -> Iterator[ElementDefinition]:
        return iter(self.list())

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, element: ElementDefinition) -> None:
        """Insert ``element`` under its fqn.

        Raises:
            DuplicateFqnError: If the fqn is already present.
            ModelFrozenError: If the store has already been flattened.
        """
        if self._frozen:
            raise ModelFrozenError(
                f"Element store is resolved; cannot add '{element.fqn}'"
            )
        if element.fqn in self._elements:
            raise DuplicateFqnError(element.fqn)
        self._elements[element.fqn] = element

    def get(self, fqn: str) -> Optional[ElementDefinition]:
        return self._elements.get(fqn)

    def list(self) -> List[ElementDefinition]:
        """All elements in ingestion order."""
        return list(self._elements.values())

    def with_hierarchy(self) -> List[ElementDefinition]:
        """Elements that have at least one ancestor."""
        return [e for e in self._elements.values() if len(e.hierarchy) > 0]

    def children_of(self, fqn: str) -> List[ElementDefinition]:
        """Elements whose nearest parent is ``fqn``."""
        return [e for e in self._elements.values() if e.parent_fqn == fqn]

    # ---------------- Resolution ---------------- #

    def flatten(self) -> None:
        """Resolve ``hierarchy`` and the merged field table of every element.

        All results are computed before any element is updated, so a fatal
        error leaves previously resolved state untouched. Calling this again
        recomputes from own fields and produces identical results.

        Raises:
            UnresolvedParentError: An element (or one of its ancestors) extends
                an fqn that is not in the store.
            CyclicHierarchyError: A parent chain revisits an fqn.
        """
        resolved: Dict[str, Tuple[List[str], List[FieldDefinition]]] = {}
        for element in self._elements.values():
            hierarchy = self._ancestor_chain(element)
            resolved[element.fqn] = (hierarchy, self._merge_fields(element, hierarchy))
            self.logger.debug(
                "Resolved %s (depth %d, %d fields)",
                element.fqn,
                len(hierarchy),
                len(resolved[element.fqn][1]),
            )

        for fqn, (hierarchy, merged) in resolved.items():
            element = self._elements[fqn]
            element.hierarchy = hierarchy
            element.merged_fields = merged
        self._frozen = True
        self.logger.info(
            "Resolved hierarchy for %d elements (%d with ancestors)",
            len(self._elements),
            len(self.with_hierarchy()),
        )

    def _ancestor_chain(self, element: ElementDefinition) -> List[str]:
        """Return ancestor fqns nearest-first, guarding against cycles."""
        visited: List[str] = [element.fqn]
        seen = {element.fqn}
        chain: List[str] = []
        current = element
        while current.parent_fqn is not None:
            parent_fqn = current.parent_fqn
            if parent_fqn in seen:
                start = visited.index(parent_fqn)
                raise CyclicHierarchyError(visited[start:] + [parent_fqn])
            parent = self._elements.get(parent_fqn)
            if parent is None:
                raise UnresolvedParentError(current.fqn, parent_fqn)
            visited.append(parent_fqn)
            seen.add(parent_fqn)
            chain.append(parent_fqn)
            current = parent
        return chain

    def _merge_fields(
        self, element: ElementDefinition, hierarchy: List[str]
    ) -> List[FieldDefinition]:
        merged: List[FieldDefinition] = []
        positions: Dict[str, int] = {}
        lineage = [self._elements[fqn] for fqn in reversed(hierarchy)] + [element]
        for declaring in lineage:
            for own in declaring.fields:
                entry = own.clone(declared_by=declaring.fqn)
                if own.name in positions:
                    merged[positions[own.name]] = entry
                else:
                    positions[own.name] = len(merged)
                    merged.append(entry)
        return merged
