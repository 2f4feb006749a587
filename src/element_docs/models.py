"""Core data structures for representing data-model element definitions.

These lightweight dataclasses are produced by the model loader and consumed
by higher level layers (the element store's hierarchy resolution, the HTML
page builder, the browse API). They avoid framework dependencies so they can
be cloned, serialized or handed to templates directly.

Overview:
        * ``FieldDefinition`` captures one field (or constraint-bearing slot)
            of an element: its name, type reference, cardinality, constraint
            records and the fqn of the element that declared it.
        * ``ElementDefinition`` is one record definition. It keeps its own
            fields as loaded plus the derived ``hierarchy`` and merged field
            table filled in by :meth:`ElementStore.flatten`.
        * ``Namespace`` groups elements and owns their output path.

Typical construction (simplified)::

        from element_docs.models import ElementDefinition

        tumor = ElementDefinition.from_dict({
                "fqn": "onc.Tumor",
                "namespace": "onc",
                "fields": [{"name": "size", "type": "Quantity", "card": {"min": 0, "max": 1}}],
        })
        tumor.name          # 'Tumor'
        tumor.to_dict()     # JSON-safe payload

Design notes:
        * Fields are kept in plain lists for predictable order (matching input
            order) which helps deterministic page output.
        * ``from_dict`` builds new objects from the decoded JSON; nothing in the
            result aliases the caller's structure.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ModelError, ModelFrozenError

UNBOUNDED_MARKERS = {"*", "n", "unbounded"}


def _segments(dotted: str) -> List[str]:
    return [part for part in dotted.split(".") if part]


def _parse_count(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise ModelError(f"Invalid cardinality {what}: {value!r}")
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ModelError(f"Invalid cardinality {what}: {value!r}") from None
    if count < 0:
        raise ModelError(f"Invalid cardinality {what}: {value!r}")
    return count


def _parse_max(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in UNBOUNDED_MARKERS:
        return None
    return _parse_count(value, "max")


@dataclass
class Cardinality:
    """Occurrence constraint of a field.

    Attributes:
        min: Minimum occurrences (0 when optional).
        max: Maximum occurrences, ``None`` for unbounded.
    """

    min: int = 0
    max: Optional[int] = 1

    @property
    def repeatable(self) -> bool:
        return self.max is None or self.max > 1

    def __str__(self) -> str:
        upper = "*" if self.max is None else str(self.max)
        return f"{self.min}..{upper}"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Cardinality":
        """Parse a ``{"min": .., "max": ..}`` record.

        Raises:
            ModelError: If a bound is not a non-negative integer.
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ModelError(f"Invalid cardinality: {data!r}")
        return cls(min=_parse_count(data.get("min") or 0, "min"), max=_parse_max(data.get("max")))


@dataclass
class FieldDefinition:
    """A single field of an element.

    Attributes:
        name: Field name; merge shadowing is keyed on it.
        type: Type reference (an fqn or primitive name, may be empty).
        card: Cardinality of the field.
        constraints: Opaque constraint records copied from input.
        description: Optional free text (Markdown).
        declared_by: Fqn of the element whose declaration this entry comes
            from. For own fields this is the owning element; in a merged table
            it records provenance.
    """

    name: str
    type: str = ""
    card: Cardinality = field(default_factory=Cardinality)
    constraints: List[Dict[str, Any]] = field(default_factory=list)
    description: Optional[str] = None
    declared_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], declared_by: Optional[str] = None) -> "FieldDefinition":
        """Build a field from its canonical JSON form.

        Accepts either a top-level ``name`` or an ``identifier`` object
        carrying ``name`` (and optionally ``fqn`` used as the type reference).

        Raises:
            ModelError: If no field name can be determined or the
                cardinality is malformed.
        """
        if not isinstance(data, dict):
            raise ModelError(f"Field record of {declared_by!r} must be an object, got {data!r}")
        identifier = data.get("identifier") or {}
        name = data.get("name") or identifier.get("name")
        if not name:
            raise ModelError(f"Field without a name declared by {declared_by!r}")
        type_ref = data.get("type") or identifier.get("fqn") or ""
        try:
            card = Cardinality.from_dict(data.get("card"))
        except ModelError as e:
            raise ModelError(f"Field '{name}' of {declared_by!r}: {e}") from None
        return cls(
            name=name,
            type=type_ref,
            card=card,
            constraints=copy.deepcopy(list(data.get("constraints") or [])),
            description=data.get("description"),
            declared_by=declared_by,
        )

    def clone(self, declared_by: Optional[str] = None) -> "FieldDefinition":
        """Return an independent copy, optionally re-tagging provenance."""
        return FieldDefinition(
            name=self.name,
            type=self.type,
            card=Cardinality(min=self.card.min, max=self.card.max),
            constraints=copy.deepcopy(self.constraints),
            description=self.description,
            declared_by=declared_by if declared_by is not None else self.declared_by,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "card": {"min": self.card.min, "max": self.card.max},
            "constraints": self.constraints,
            "description": self.description,
            "declared_by": self.declared_by,
        }


@dataclass
class ElementDefinition:
    """Represents one data element along with its resolved inheritance view.

    Attributes:
        fqn: Fully-qualified name, unique across the model.
        name: Simple name (last dotted segment of ``fqn`` when not given).
        namespace: Declaring namespace name.
        parent_fqn: Fqn of the element this one extends, or ``None`` for roots.
        fields: Own field declarations in input order.
        description: Free-text description (Markdown).
        extra: Any other keys of the input record, deep-copied.
        hierarchy: Ancestor fqns nearest-first; filled by ``flatten``.
        merged_fields: Own + inherited fields, most specific wins; filled by
            ``flatten``.
        namespace_path: Output directory of the owning namespace; set by the
            loader.
    """

    fqn: str
    name: str
    namespace: str
    parent_fqn: Optional[str] = None
    fields: List[FieldDefinition] = field(default_factory=list)
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    hierarchy: List[str] = field(default_factory=list)
    merged_fields: List[FieldDefinition] = field(default_factory=list)
    namespace_path: Optional[str] = None

    _KNOWN_KEYS = ("fqn", "name", "namespace", "parentFqn", "parent", "fields", "description")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementDefinition":
        """Structurally clone a decoded ``dataElements`` record.

        Raises:
            ModelError: If the record has no ``fqn`` or no namespace can be
                derived from it.
        """
        fqn = data.get("fqn")
        if not fqn:
            raise ModelError("Data element without an 'fqn'")
        if not isinstance(fqn, str):
            raise ModelError(f"Data element fqn must be a string, got {fqn!r}")
        head, _, tail = fqn.rpartition(".")
        namespace = data.get("namespace") or head
        if not isinstance(namespace, str) or not _segments(namespace):
            raise ModelError(f"Data element '{fqn}' has no namespace")
        name = data.get("name") or tail
        if not name or not isinstance(name, str) or "/" in name or "\\" in name:
            raise ModelError(f"Data element '{fqn}' has an invalid name: {name!r}")
        parent = data.get("parentFqn")
        if parent is None and isinstance(data.get("parent"), dict):
            parent = data["parent"].get("fqn")
        elif parent is None:
            parent = data.get("parent")
        return cls(
            fqn=fqn,
            name=name,
            namespace=namespace,
            parent_fqn=parent or None,
            fields=[FieldDefinition.from_dict(f, declared_by=fqn) for f in data.get("fields") or []],
            description=data.get("description"),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in cls._KNOWN_KEYS},
        )

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def is_root(self) -> bool:
        return self.parent_fqn is None

    def field_named(self, name: str) -> Optional[FieldDefinition]:
        """Return the merged field called ``name`` (or ``None``)."""
        for f in self.merged_fields:
            if f.name == name:
                return f
        return None

    def inherited_fields(self) -> List[FieldDefinition]:
        return [f for f in self.merged_fields if f.declared_by != self.fqn]

    def to_dict(self, include_fields: bool = True) -> dict:
        payload: Dict[str, Any] = {
            "fqn": self.fqn,
            "name": self.name,
            "namespace": self.namespace,
            "parent_fqn": self.parent_fqn,
            "description": self.description,
            "hierarchy": list(self.hierarchy),
            "namespace_path": self.namespace_path,
        }
        if include_fields:
            payload["fields"] = [f.to_dict() for f in self.fields]
            payload["merged_fields"] = [f.to_dict() for f in self.merged_fields]
        return payload


@dataclass
class Namespace:
    """A named grouping of elements, mapped to an output directory.

    Attributes:
        name: Dotted namespace name (e.g. ``shr.oncology``).
        description: Human-readable description (Markdown).
        elements: Member elements in ingestion order.
    """

    name: str
    description: Optional[str] = None
    elements: List[ElementDefinition] = field(default_factory=list)
    frozen: bool = field(default=False, repr=False)

    @property
    def path(self) -> str:
        """Filesystem-safe output directory (``shr.oncology`` -> ``shr/oncology``)."""
        return "/".join(_segments(self.name))

    @property
    def file_stem(self) -> str:
        """Stem used for the package/info page file names."""
        return "_".join(_segments(self.name))

    def add_element(self, element: ElementDefinition) -> None:
        if self.frozen:
            raise ModelFrozenError(
                f"Namespace '{self.name}' is frozen; cannot add '{element.fqn}'"
            )
        self.elements.append(element)

    def sorted_elements(self) -> List[ElementDefinition]:
        """Members ordered by display name, ties broken by fqn."""
        return sorted(self.elements, key=lambda e: (e.display_name, e.fqn))

    def to_dict(self, include_elements: bool = True) -> dict:
        payload: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "path": self.path,
            "element_count": len(self.elements),
        }
        if include_elements:
            payload["elements"] = [e.fqn for e in self.sorted_elements()]
        return payload
