from pathlib import Path

from fastapi.testclient import TestClient

from element_docs.app import ModelRepository, app, get_repository

FIXTURE_MODEL = Path(__file__).resolve().parent / "fixtures" / "model" / "sample_model.json"


def override_repository():
    return ModelRepository(FIXTURE_MODEL)


def create_client():
    app.dependency_overrides[get_repository] = override_repository
    return TestClient(app)


def test_metadata_endpoint():
    client = create_client()
    response = client.get("/metadata")
    assert response.status_code == 200
    data = response.json()
    assert data["project_info"]["name"] == "Standard Health Record"
    assert data["elements"] == 6
    assert data["namespaces"] == 3
    assert "ETag" in response.headers
    assert "Cache-Control" in response.headers
    assert "X-Response-Time" in response.headers


def test_metadata_endpoint_with_etag():
    repo = ModelRepository(FIXTURE_MODEL)
    app.dependency_overrides[get_repository] = lambda: repo
    client = TestClient(app)
    etag = client.get("/metadata").headers["ETag"]
    response = client.get("/metadata", headers={"If-None-Match": etag})
    assert response.status_code == 304


def test_namespaces_are_ordered():
    client = create_client()
    response = client.get("/namespaces")
    assert response.status_code == 200
    names = [ns["name"] for ns in response.json()]
    assert names == ["misc", "onc", "shr.core"]


def test_namespace_detail_lists_sorted_members():
    client = create_client()
    body = client.get("/namespaces/onc").json()
    assert body["path"] == "onc"
    assert body["elements"] == ["onc.MalignantTumor", "onc.Tumor", "onc.TumorSize"]


def test_element_detail_has_resolved_view():
    client = create_client()
    response = client.get("/elements/onc.MalignantTumor")
    assert response.status_code == 200
    body = response.json()
    assert body["hierarchy"] == ["onc.Tumor"]
    assert [f["name"] for f in body["merged_fields"]] == ["size", "grade"]
    assert body["merged_fields"][0]["declared_by"] == "onc.Tumor"
    assert body["namespace_path"] == "onc"


def test_element_children():
    client = create_client()
    body = client.get("/elements/shr.core.Entity").json()
    assert body["children"] == ["shr.core.Observation"]


def test_elements_filters():
    client = create_client()
    with_parents = client.get("/elements", params={"has_hierarchy": True}).json()
    assert [e["fqn"] for e in with_parents] == [
        "shr.core.Observation",
        "onc.MalignantTumor",
        "onc.TumorSize",
    ]
    roots_in_onc = client.get("/elements", params={"has_hierarchy": False, "namespace": "onc"}).json()
    assert [e["fqn"] for e in roots_in_onc] == ["onc.Tumor"]


def test_unknown_element_is_404():
    client = create_client()
    response = client.get("/elements/onc.DoesNotExist")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Not Found"
    assert "onc.DoesNotExist" in body["detail"]


def test_unknown_namespace_is_404():
    client = create_client()
    assert client.get("/namespaces/nope").status_code == 404


def test_search_endpoint():
    client = create_client()
    results = client.get("/search", params={"query": "tumor"}).json()["results"]
    assert {r["fqn"] for r in results} == {"onc.Tumor", "onc.MalignantTumor", "onc.TumorSize"}


def test_health_reports_unhealthy_for_malformed_model(tmp_path, monkeypatch):
    broken = tmp_path / "broken.json"
    broken.write_text('{"dataElements": [{"fqn": "a.B", "parentFqn": "a.Missing"}]}', encoding="utf-8")
    monkeypatch.setenv("ELEMENT_DOCS_MODEL", str(broken))
    get_repository.cache_clear()
    try:
        client = TestClient(app)
        body = client.get("/health").json()
        assert body["status"] == "unhealthy"
        assert "a.Missing" in body["error"]
    finally:
        get_repository.cache_clear()
