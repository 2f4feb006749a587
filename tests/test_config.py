from element_docs.config import BuildConfig, get_build_config


def test_defaults():
    config = get_build_config("")
    assert config == BuildConfig()
    assert config.export_version == "0.1.0"
    assert config.copy_assets is True


def test_overrides_from_string():
    config = get_build_config("export_version=2.1.0, copy_assets=false,autolink=TRUE,unknown=1")
    assert config.export_version == "2.1.0"
    assert config.copy_assets is False
    assert config.autolink is True


def test_overrides_from_environment(monkeypatch):
    monkeypatch.setenv("ELEMENT_DOCS_CONFIG", "copy_assets=false")
    assert get_build_config().copy_assets is False
