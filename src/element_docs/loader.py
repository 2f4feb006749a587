"""Load the canonical JSON model and resolve it.

This module provides thin orchestration helpers for producing a fully
resolved :class:`CompiledModel` from a decoded JSON payload. Heavy lifting is
delegated to :class:`~element_docs.elements.ElementStore` (hierarchy
resolution) and :class:`~element_docs.namespaces.NamespaceRegistry`.

Loading is two-phase: every element is ingested first, then
:meth:`ElementStore.flatten` runs once. Nothing reads ``hierarchy`` or the
merged fields before that, and both stores are frozen afterwards.

Example:
    from pathlib import Path
    from element_docs.loader import load_model_file

    model = load_model_file(Path("cimcore.json"))
    for namespace in model.namespaces.list():
        print(namespace.name, len(namespace.elements))
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import DEFAULT_EXPORT_VERSION
from .elements import ElementStore
from .errors import ModelError
from .models import ElementDefinition
from .namespaces import NamespaceRegistry


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CompiledModel:
    """Element store, namespace registry and run metadata for one build.

    Attributes:
        project_info: ``projectInfo`` mapping from the input (copied).
        elements: Resolved element store.
        namespaces: Namespace registry.
        export_version: Version stamp for generated pages.
        export_time: ISO-8601 UTC timestamp captured once per run.
    """

    project_info: Dict[str, Any]
    elements: ElementStore
    namespaces: NamespaceRegistry
    export_version: str = DEFAULT_EXPORT_VERSION
    export_time: str = field(default_factory=_utc_timestamp)

    @property
    def resolved(self) -> bool:
        return self.elements.frozen

    def summary(self) -> Dict[str, Any]:
        return {
            "project": self.project_info.get("name"),
            "version": self.project_info.get("version"),
            "namespaces": len(self.namespaces),
            "elements": len(self.elements),
            "elements_with_hierarchy": len(self.elements.with_hierarchy()),
            "export_time": self.export_time,
            "export_version": self.export_version,
        }


class ModelLoader:
    """Populate an element store and namespace registry from decoded JSON.

    Args:
        elements: Target element store.
        namespaces: Target namespace registry.
        logger: Logger for progress messages; defaults to the module logger.
    """

    def __init__(
        self,
        elements: ElementStore,
        namespaces: NamespaceRegistry,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.elements = elements
        self.namespaces = namespaces
        self.logger = logger or logging.getLogger(__name__)

    def load(self, payload: Mapping[str, Any]) -> None:
        """Ingest namespaces then data elements.

        Raises:
            DuplicateFqnError: An fqn appears more than once.
            ModelError: A record is malformed (e.g. missing fqn).
        """
        declared = payload.get("namespaces") or {}
        self.logger.info(
            "Compiling documentation for %s namespaces...", len(declared)
        )
        for name, info in declared.items():
            namespace = self.namespaces.get(name)
            if isinstance(info, Mapping):
                namespace.description = info.get("description")
            else:
                namespace.description = info

        for record in payload.get("dataElements") or []:
            if not isinstance(record, Mapping):
                raise ModelError(f"Data element record must be an object, got {type(record).__name__}")
            element = ElementDefinition.from_dict(record)
            self.elements.add(element)
            namespace = self.namespaces.get(element.namespace)
            namespace.add_element(element)
            element.namespace_path = namespace.path


def compile_model(
    payload: Mapping[str, Any],
    logger: Optional[logging.Logger] = None,
    export_version: str = DEFAULT_EXPORT_VERSION,
) -> CompiledModel:
    """Load ``payload`` and resolve every element's hierarchy.

    Args:
        payload: Decoded canonical JSON (``projectInfo``, ``namespaces``,
            ``dataElements``).
        logger: Logger threaded through the loader and the element store.
        export_version: Version stamp recorded on the model.

    Returns:
        A resolved, frozen :class:`CompiledModel`.

    Raises:
        DuplicateFqnError, UnresolvedParentError, CyclicHierarchyError: On a
            malformed model. No partially resolved model is returned.
    """
    log = logger or logging.getLogger(__name__)
    elements = ElementStore(logger=log)
    namespaces = NamespaceRegistry(logger=log)
    ModelLoader(elements, namespaces, logger=log).load(payload)
    elements.flatten()
    namespaces.freeze()
    project_info = payload.get("projectInfo") or {}
    return CompiledModel(
        project_info=copy.deepcopy(dict(project_info)),
        elements=elements,
        namespaces=namespaces,
        export_version=export_version,
    )


def load_model_file(
    path: Path,
    logger: Optional[logging.Logger] = None,
    export_version: str = DEFAULT_EXPORT_VERSION,
) -> CompiledModel:
    """Read a canonical JSON file (UTF-8) and compile it."""
    with open(Path(path), "r", encoding="utf-8") as f:
        payload = json.load(f)
    return compile_model(payload, logger=logger, export_version=export_version)
