from pathlib import Path

import pytest
from jinja2 import TemplateError

from element_docs.config import BuildConfig
from element_docs.elements import ElementStore
from element_docs.errors import ModelError
from element_docs.loader import CompiledModel, compile_model, load_model_file
from element_docs.namespaces import NamespaceRegistry
from element_docs.renderer import PageBuilder, export_to_path, id_for, make_html, make_summary_html

FIXTURE_MODEL = Path(__file__).resolve().parent / "fixtures" / "model" / "sample_model.json"


def test_generate_html_writes_every_page(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    written = export_to_path(model, tmp_path)

    expected = [
        "index.html",
        "stylesheet.css",
        "overview-frame.html",
        "overview-summary.html",
        "allclasses-frame.html",
        "onc/onc-pkg.html",
        "onc/onc-info.html",
        "shr/core/shr_core-pkg.html",
        "shr/core/shr_core-info.html",
        "misc/misc-pkg.html",
        "misc/misc-info.html",
        "shr/core/Entity.html",
        "shr/core/Observation.html",
        "onc/Tumor.html",
        "onc/MalignantTumor.html",
        "onc/TumorSize.html",
        "misc/Annotation.html",
    ]
    for relative in expected:
        assert (tmp_path / relative).is_file(), relative
    # Static assets are copied, not rendered
    assert len(written) == len(expected) - 2


def test_package_page_lists_members_by_display_name(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    export_to_path(model, tmp_path)
    html = (tmp_path / "onc" / "onc-pkg.html").read_text(encoding="utf-8")
    positions = [html.index(f">{name}</a>") for name in ["MalignantTumor", "Tumor", "TumorSize"]]
    assert positions == sorted(positions)


def test_all_elements_frame_only_lists_elements_with_ancestors(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    export_to_path(model, tmp_path)
    html = (tmp_path / "allclasses-frame.html").read_text(encoding="utf-8")
    assert "onc/MalignantTumor.html" in html
    assert "onc/TumorSize.html" in html
    assert "shr/core/Observation.html" in html
    assert "onc/Tumor.html\"" not in html
    assert "shr/core/Entity.html" not in html


def test_element_page_shows_inherited_fields_and_links(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    export_to_path(model, tmp_path)
    html = (tmp_path / "onc" / "TumorSize.html").read_text(encoding="utf-8")
    assert "shr.core.Observation" in html
    assert '../shr/core/Entity.html' in html
    assert "inherited" in html
    assert "valueSet" in html
    assert "0..*" in html


def test_overview_summary_renders_markdown(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    export_to_path(model, tmp_path)
    html = (tmp_path / "overview-summary.html").read_text(encoding="utf-8")
    assert "<strong>identified</strong>" in html
    assert "Standard Health Record" in html


def test_pages_carry_export_stamp(tmp_path):
    model = load_model_file(FIXTURE_MODEL, export_version="9.9.9")
    export_to_path(model, tmp_path)
    for page in ["overview-frame.html", "onc/Tumor.html"]:
        html = (tmp_path / page).read_text(encoding="utf-8")
        assert model.export_time in html
        assert 'content="9.9.9"' in html


def test_assets_can_be_skipped(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    export_to_path(model, tmp_path, config=BuildConfig(copy_assets=False))
    assert not (tmp_path / "stylesheet.css").exists()
    assert (tmp_path / "overview-frame.html").exists()


def test_unresolved_model_is_refused(tmp_path):
    model = CompiledModel(project_info={}, elements=ElementStore(), namespaces=NamespaceRegistry())
    with pytest.raises(ModelError):
        PageBuilder(model, tmp_path / "out")
    assert not (tmp_path / "out").exists()


def test_rendering_errors_are_raised(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    builder = PageBuilder(model, tmp_path)
    with pytest.raises(TemplateError):
        builder.render_page("does-not-exist.html", {}, "broken.html")
    assert not (tmp_path / "broken.html").exists()


def test_make_html_escapes_raw_html_and_links_urls():
    html = make_html("See <b>this</b> at https://example.org/x")
    assert "<b>" not in html
    assert "&lt;b&gt;" in html
    assert '<a href="https://example.org/x">' in html
    assert make_html(None) == ""


def test_make_summary_html_uses_first_paragraph():
    html = make_summary_html("First *para*.\n\nSecond para.")
    assert "<em>para</em>" in html
    assert "Second" not in html


def test_id_for_is_stable():
    assert id_for("onc/Tumor.html") == id_for("onc/Tumor.html")
    assert id_for("onc/Tumor.html") != id_for("onc/TumorSize.html")


def test_pages_stay_inside_output_directory(tmp_path):
    model = compile_model({"dataElements": [{"fqn": "Tumor", "namespace": ".onc.", "fields": [{"name": "size"}]}]})
    out_dir = tmp_path / "out"
    written = export_to_path(model, out_dir)
    assert (out_dir / "onc" / "Tumor.html").is_file()
    assert (out_dir / "onc" / "onc-pkg.html").is_file()
    root = out_dir.resolve()
    assert all(root in page.resolve().parents for page in written)


def test_render_page_refuses_paths_outside_output_directory(tmp_path):
    model = load_model_file(FIXTURE_MODEL)
    builder = PageBuilder(model, tmp_path / "out")
    with pytest.raises(ModelError):
        builder.render_page("info.html", {"namespace": model.namespaces.get("onc")}, "../escaped.html")
    with pytest.raises(ModelError):
        builder.render_page("info.html", {"namespace": model.namespaces.get("onc")}, "/escaped.html")
    assert not (tmp_path / "escaped.html").exists()
