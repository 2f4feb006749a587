"""FastAPI application exposing a resolved data-element model.

The browse API serves the same resolved model the page builder renders, so a
documentation site (or any other client) can query elements, their resolved
hierarchy and merged fields, and namespace listings as JSON.

Quick start (run the server)::

    ELEMENT_DOCS_MODEL=cimcore.json python -m element_docs.run_server

Core endpoints (REST):

    GET /health                       Basic health probe
    GET /metadata                     Project info + counts + ETag
    GET /namespaces                   All namespaces (ordered by name)
    GET /namespaces/{name}            One namespace with its members
    GET /elements                     Elements (filter by namespace / hierarchy)
    GET /elements/{fqn}               One element with hierarchy + merged fields
    GET /search?query=Tumor           Search by name/fqn

Example: conditional metadata request::

    curl -i http://localhost:8000/metadata
    curl -i http://localhost:8000/metadata -H "If-None-Match: \"<etag-from-first-call>\""

Error handling:
    * 404 responses carry a JSON body with ``error``, ``detail`` and ``path``.
    * A malformed model (duplicate fqn, dangling parent, cycle) fails the
      repository load; ``/health`` then reports ``unhealthy``.
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import MODEL_ENV_VAR
from .loader import CompiledModel, compile_model, load_model_file

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Element Docs API",
    version=__version__,
    description="Read-only access to a resolved data-element model",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def timing_headers(request: Request, call_next):
    """Attach response timing and API version headers."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Response-Time"] = f"{time.time() - start_time:.3f}s"
    response.headers["X-API-Version"] = __version__
    return response


class FieldResponse(BaseModel):
    """A merged field with provenance."""

    name: str = Field(..., description="Field name")
    type: str = Field("", description="Type reference")
    card: Dict[str, Optional[int]] = Field(..., description="Cardinality (max null = unbounded)")
    constraints: List[Dict[str, Any]] = Field(default_factory=list)
    description: Optional[str] = None
    declared_by: Optional[str] = Field(None, description="Fqn whose declaration won")


class ElementSummary(BaseModel):
    """Listing entry for an element."""

    fqn: str
    name: str
    namespace: str
    parent_fqn: Optional[str] = None
    hierarchy: List[str] = Field(default_factory=list)
    namespace_path: Optional[str] = None


class ElementResponse(ElementSummary):
    """Full element view including own and merged fields."""

    description: Optional[str] = None
    fields: List[FieldResponse] = Field(default_factory=list)
    merged_fields: List[FieldResponse] = Field(default_factory=list)
    children: List[str] = Field(default_factory=list, description="Direct sub-elements")


class NamespaceResponse(BaseModel):
    """Namespace with output path and member fqns (sorted by display name)."""

    name: str
    description: Optional[str] = None
    path: str
    element_count: int
    elements: List[str] = Field(default_factory=list)


class ModelRepository:
    """Hold one resolved model plus HTTP caching metadata.

    Args:
        model_path: Canonical JSON file to load. When omitted, the path comes
            from ``ELEMENT_DOCS_MODEL``; with neither, an empty model is used.
        model: An already compiled model (takes precedence over paths).

    Raises:
        ModelError: If the model file is malformed.
    """

    def __init__(
        self,
        model_path: Optional[Path] = None,
        model: Optional[CompiledModel] = None,
    ) -> None:
        if model is not None:
            self.model = model
            self.source = "memory"
        else:
            path = model_path or os.getenv(MODEL_ENV_VAR)
            if path:
                self.model = load_model_file(Path(path), logger=logger)
                self.source = str(path)
            else:
                logger.warning("No model configured; serving an empty model")
                self.model = compile_model({}, logger=logger)
                self.source = "empty"
        self.metadata: Dict[str, Any] = {
            "project_info": self.model.project_info,
            "source": self.source,
            **self.model.summary(),
        }
        self._calculate_etag()

    def _calculate_etag(self) -> None:
        content = f"{self.source}-{self.model.export_time}-{len(self.model.elements)}"
        self.etag = f'"{hashlib.md5(content.encode()).hexdigest()}"'
        self.last_modified = datetime.now()

    def search(self, query: str, limit: int = 100) -> List[Dict[str, str]]:
        lower = query.lower()
        matches = []
        for element in self.model.elements.list():
            if lower in element.name.lower() or lower in element.fqn.lower():
                matches.append(
                    {"fqn": element.fqn, "name": element.name, "namespace": element.namespace}
                )
                if len(matches) >= limit:
                    break
        return matches


@lru_cache(maxsize=1)
def get_repository() -> ModelRepository:
    return ModelRepository()


@app.get("/health")
def health() -> Dict[str, Any]:
    """Health check endpoint."""
    try:
        repo = get_repository()
        return {"status": "healthy", "elements": len(repo.model.elements)}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


@app.get("/metadata")
def metadata(
    response: Response,
    if_none_match: Optional[str] = Header(None),
    repo: ModelRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Project info, counts and export stamp, with ETag support."""
    if if_none_match and if_none_match == repo.etag:
        response.status_code = 304
        return {}

    response.headers["ETag"] = repo.etag
    response.headers["Last-Modified"] = repo.last_modified.strftime(
        "%a, %d %b %Y %H:%M:%S GMT"
    )
    response.headers["Cache-Control"] = "public, max-age=3600"
    return repo.metadata


@app.get("/namespaces", response_model=List[NamespaceResponse])
def list_namespaces(repo: ModelRepository = Depends(get_repository)):
    return [ns.to_dict() for ns in repo.model.namespaces.list()]


@app.get("/namespaces/{name}", response_model=NamespaceResponse)
def get_namespace(name: str, repo: ModelRepository = Depends(get_repository)):
    namespace = repo.model.namespaces.find(name)
    if namespace is None:
        raise HTTPException(status_code=404, detail=f"Namespace not found: {name}")
    return namespace.to_dict()


@app.get("/elements", response_model=List[ElementSummary])
def list_elements(
    namespace: Optional[str] = Query(None, description="Only members of this namespace"),
    has_hierarchy: Optional[bool] = Query(
        None, description="True: only elements with ancestors; False: only roots"
    ),
    repo: ModelRepository = Depends(get_repository),
):
    """List elements in model order."""
    if has_hierarchy:
        elements = repo.model.elements.with_hierarchy()
    else:
        elements = repo.model.elements.list()
        if has_hierarchy is False:
            elements = [e for e in elements if not e.hierarchy]
    if namespace is not None:
        elements = [e for e in elements if e.namespace == namespace]
    return [e.to_dict(include_fields=False) for e in elements]


@app.get("/elements/{fqn}", response_model=ElementResponse)
def get_element(fqn: str, repo: ModelRepository = Depends(get_repository)):
    element = repo.model.elements.get(fqn)
    if element is None:
        raise HTTPException(status_code=404, detail=f"Element not found: {fqn}")
    payload = element.to_dict()
    payload["children"] = [c.fqn for c in repo.model.elements.children_of(fqn)]
    return payload


@app.get("/search")
def search(
    query: str = Query(..., min_length=2, description="Case-insensitive name/fqn contains search"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of results"),
    repo: ModelRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Search elements by partial name or fqn."""
    results = repo.search(query, limit=limit)
    return {"query": query, "results": results, "total": len(results)}


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """JSON 404 body with the missing resource."""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "detail": (
                str(exc.detail)
                if hasattr(exc, "detail")
                else "The requested resource was not found"
            ),
            "path": str(request.url.path),
        },
    )
