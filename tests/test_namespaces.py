import pytest

from element_docs.errors import ModelError, ModelFrozenError
from element_docs.models import ElementDefinition, Namespace
from element_docs.namespaces import NamespaceRegistry


def test_get_creates_once_and_returns_same_instance():
    registry = NamespaceRegistry()
    first = registry.get("shr.core")
    first.description = "Core"
    assert registry.get("shr.core") is first
    assert registry.get("shr.core").description == "Core"
    assert len(registry) == 1


def test_find_does_not_create():
    registry = NamespaceRegistry()
    assert registry.find("missing") is None
    assert "missing" not in registry


def test_list_is_ordered_by_name():
    registry = NamespaceRegistry()
    for name in ["shr.onc", "alpha", "shr.core", "Zed"]:
        registry.get(name)
    assert [n.name for n in registry.list()] == ["Zed", "alpha", "shr.core", "shr.onc"]


def test_paths_are_filesystem_safe():
    namespace = Namespace(name="shr.core.base")
    assert namespace.path == "shr/core/base"
    assert namespace.file_stem == "shr_core_base"


def test_paths_drop_empty_segments():
    namespace = Namespace(name=".onc..tumor.")
    assert namespace.path == "onc/tumor"
    assert namespace.file_stem == "onc_tumor"


@pytest.mark.parametrize("name", ["", ".", ".."])
def test_get_rejects_names_without_segments(name):
    registry = NamespaceRegistry()
    with pytest.raises(ModelError):
        registry.get(name)
    assert len(registry) == 0


def test_sorted_elements_breaks_ties_by_fqn():
    namespace = Namespace(name="onc")
    for record in [
        {"fqn": "onc.z.Tumor", "namespace": "onc", "name": "Tumor"},
        {"fqn": "onc.Grade", "namespace": "onc"},
        {"fqn": "onc.a.Tumor", "namespace": "onc", "name": "Tumor"},
    ]:
        namespace.add_element(ElementDefinition.from_dict(record))
    assert [e.fqn for e in namespace.sorted_elements()] == [
        "onc.Grade",
        "onc.a.Tumor",
        "onc.z.Tumor",
    ]
    # Member list keeps ingestion order
    assert [e.fqn for e in namespace.elements][0] == "onc.z.Tumor"


def test_freeze_blocks_new_namespaces_and_members():
    registry = NamespaceRegistry()
    existing = registry.get("onc")
    registry.freeze()
    assert registry.get("onc") is existing
    with pytest.raises(ModelFrozenError):
        registry.get("new")
    with pytest.raises(ModelFrozenError):
        existing.add_element(ElementDefinition.from_dict({"fqn": "onc.Late"}))
