"""Namespace registry with explicit lookup-or-create semantics.

Namespaces are created lazily: :meth:`NamespaceRegistry.get` returns the
existing namespace or registers a new one. Both the namespace-description pass
and the element-ingestion pass of the loader call it, in either order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import ModelError, ModelFrozenError
from .models import Namespace


class NamespaceRegistry:
    """Name-keyed set of :class:`~element_docs.models.Namespace` objects."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._namespaces: Dict[str, Namespace] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._namespaces)

    def __contains__(self, name: object) -> bool:
        return name in self._namespaces

    def get(self, name: str) -> Namespace:
        """Return the namespace called ``name``, creating it on first use.

        Raises:
            ModelError: If ``name`` has no non-empty dotted segment.
            ModelFrozenError: If ``name`` is new and the registry is frozen.
        """
        namespace = self._namespaces.get(name)
        if namespace is None:
            if not isinstance(name, str) or not name.strip(".").strip():
                raise ModelError(f"Invalid namespace name: {name!r}")
            if self._frozen:
                raise ModelFrozenError(
                    f"Namespace registry is frozen; cannot create '{name}'"
                )
            namespace = Namespace(name=name)
            self._namespaces[name] = namespace
            self.logger.debug("Registered namespace %s", name)
        return namespace

    def find(self, name: str) -> Optional[Namespace]:
        """Lookup without creating."""
        return self._namespaces.get(name)

    def list(self) -> List[Namespace]:
        """All namespaces, ordered by name."""
        return [self._namespaces[name] for name in sorted(self._namespaces)]

    def freeze(self) -> None:
        self._frozen = True
        for namespace in self._namespaces.values():
            namespace.frozen = True
