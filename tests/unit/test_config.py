"""Unit tests for config.py"""

import pytest
from pydantic import ValidationError

from trackhours.config import load_config


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory with no TRACKHOURS_* variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("LOG_LEVEL", "STRICT", "ASSUME_OPEN_JANUARY", "OUTPUT_FORMAT", "APP_NAME"):
        monkeypatch.delenv(f"TRACKHOURS_{name}", raising=False)


def test_load_config_defaults():
    """Settings defaults apply when no config.yaml, env var, or override exists."""
    settings = load_config()
    assert settings.log_level == "WARNING"
    assert settings.strict is False
    assert settings.assume_open_january is True
    assert settings.output_format == "text"


def test_load_config_uses_env_log_level(monkeypatch):
    """TRACKHOURS_LOG_LEVEL env var is picked up by load_config."""
    monkeypatch.setenv("TRACKHOURS_LOG_LEVEL", "DEBUG")
    assert load_config().log_level == "DEBUG"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """TRACKHOURS_OUTPUT_FORMAT takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("output_format: text\n")
    monkeypatch.setenv("TRACKHOURS_OUTPUT_FORMAT", "json")
    assert load_config().output_format == "json"


def test_load_config_reads_config_yaml(tmp_path):
    """config.yaml values are applied."""
    (tmp_path / "config.yaml").write_text("strict: true\nassume_open_january: false\n")
    settings = load_config()
    assert settings.strict is True
    assert settings.assume_open_january is False


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("TRACKHOURS_STRICT", "false")
    assert load_config(overrides={"strict": True}).strict is True
    assert load_config(overrides={"strict": None}).strict is False


def test_load_config_env_bool_coercion(monkeypatch):
    """TRACKHOURS_ASSUME_OPEN_JANUARY is coerced to bool."""
    monkeypatch.setenv("TRACKHOURS_ASSUME_OPEN_JANUARY", "0")
    assert load_config().assume_open_january is False


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_rejects_unknown_log_level(monkeypatch):
    """Field patterns are validated."""
    monkeypatch.setenv("TRACKHOURS_LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        load_config()


def test_load_config_normalizes_case(monkeypatch):
    """Log level and output format are accepted in any case."""
    monkeypatch.setenv("TRACKHOURS_LOG_LEVEL", "debug")
    monkeypatch.setenv("TRACKHOURS_OUTPUT_FORMAT", "JSON")
    settings = load_config()
    assert settings.log_level == "DEBUG"
    assert settings.output_format == "json"
