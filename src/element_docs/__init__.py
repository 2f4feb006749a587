"""Element Docs
==============

Documentation compiler for structured data-model specifications: typed
record definitions ("data elements") organized into namespaces, each possibly
extending a parent element.

Key capabilities
----------------
- Load the canonical JSON model (``projectInfo``, ``namespaces``,
  ``dataElements``) into an :class:`~element_docs.elements.ElementStore` and a
  :class:`~element_docs.namespaces.NamespaceRegistry`.
- Resolve inheritance once per run: ancestor chains (``hierarchy``) and merged
  field tables where the most specific declaration of a field wins.
- Render a static HTML site (package, info, overview and element pages) with
  jinja2 templates and Markdown descriptions.
- Serve the resolved model read-only over HTTP (FastAPI).

Design principles
-----------------
1. **Two-phase resolution** – load everything, then flatten; stores are
   frozen afterwards so readers never observe partial state.
2. **Fatal model errors** – duplicate fqns, dangling parents and cycles abort
   the run before any page is written.
3. **Deterministic output** – elements keep input order, namespaces sort by
   name, package listings sort by display name then fqn.

Minimal quick start
-------------------
>>> from element_docs import compile_model
>>> model = compile_model({"dataElements": [{"fqn": "onc.Tumor"}]})
>>> model.elements.get("onc.Tumor").namespace_path
'onc'
"""

__version__ = "0.1.0"

from .elements import ElementStore
from .errors import (
    CyclicHierarchyError,
    DuplicateFqnError,
    ModelError,
    ModelFrozenError,
    UnresolvedParentError,
)
from .loader import CompiledModel, compile_model, load_model_file
from .models import ElementDefinition, FieldDefinition, Namespace
from .namespaces import NamespaceRegistry

__all__ = [
    "CompiledModel",
    "CyclicHierarchyError",
    "DuplicateFqnError",
    "ElementDefinition",
    "ElementStore",
    "FieldDefinition",
    "ModelError",
    "ModelFrozenError",
    "Namespace",
    "NamespaceRegistry",
    "UnresolvedParentError",
    "compile_model",
    "load_model_file",
]
