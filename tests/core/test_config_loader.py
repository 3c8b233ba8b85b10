import pytest

from activation.config import ConfigError, clear_config_cache, get_config


def _write(config_dir, name, text):
    (config_dir / name).write_text(text, encoding="utf-8")
    clear_config_cache()


def test_defaults_without_files(config_dir):
    cfg = get_config()
    assert cfg.modules.enabled is True
    assert cfg.modules.exclude == []
    assert cfg.registry.directory == "registry.d"
    assert cfg.registry.metadata_index == "metadata-index.yaml"


def test_valid_load(config_dir):
    _write(
        config_dir,
        "base.yaml",
        "schema_version: 1\n"
        "modules:\n"
        "  enabled: true\n"
        "  exclude: [app.debug]\n"
        "registry:\n"
        "  directory: manifests\n"
        "logging: {level: debug, format: json}\n"
        "metrics: {}\n",
    )
    cfg = get_config()
    assert cfg.modules.exclude == ["app.debug"]
    assert cfg.registry.directory == "manifests"
    assert cfg.logging.format == "json"


def test_local_overrides_win(config_dir):
    _write(config_dir, "base.yaml", "modules: {exclude: [a]}\n")
    _write(config_dir, "overrides.local.yaml", "modules: {enabled: false}\n")
    cfg = get_config()
    assert cfg.modules.enabled is False
    assert cfg.modules.exclude == ["a"]


def test_invalid_key_rejected(config_dir):
    _write(config_dir, "base.yaml", "modules:\n  unknown_field: 123\n")
    with pytest.raises(ConfigError) as ei:
        get_config()
    assert "modules" in str(ei.value)


def test_unknown_section_rejected(config_dir):
    _write(config_dir, "base.yaml", "llm: {primary: {id: p}}\n")
    with pytest.raises(ConfigError):
        get_config()


def test_empty_registry_directory_rejected(config_dir):
    _write(config_dir, "base.yaml", "registry: {directory: ''}\n")
    with pytest.raises(ConfigError) as ei:
        get_config()
    assert "registry.directory" in str(ei.value)


def test_broken_yaml_rejected(config_dir):
    _write(config_dir, "base.yaml", "modules: [unclosed\n")
    with pytest.raises(ConfigError):
        get_config()


def test_exclude_string_tokenized(config_dir):
    _write(config_dir, "base.yaml", "modules: {exclude: 'a.b, c.d ,'}\n")
    assert get_config().modules.exclude == ["a.b", "c.d"]
