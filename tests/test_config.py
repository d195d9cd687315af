"""
Tests for engine configuration loading.
"""

import pytest
from dfe.config import EngineConfig, load_config


def test_defaults_without_file(tmp_path):
    config = load_config(tmp_path / "missing.yaml", environ={})
    assert config == EngineConfig()
    assert config.api_base_url == "http://localhost:3000/api"
    assert config.autosave_delay_seconds == 2.0


def test_yaml_values(tmp_path):
    path = tmp_path / "dfe.yaml"
    path.write_text(
        "api_base_url: https://forms.example.com/api/\n"
        "request_timeout_seconds: 5\n"
        "log_level: debug\n",
        encoding="utf-8",
    )
    config = load_config(path, environ={})
    assert config.api_base_url == "https://forms.example.com/api"
    assert config.request_timeout_seconds == 5
    assert config.log_level == "DEBUG"


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "dfe.yaml"
    path.write_text("autosave_delay_seconds: 1\n", encoding="utf-8")
    config = load_config(path, environ={
        "DFE_AUTOSAVE_DELAY": "0.5",
        "DFE_API_URL": "http://other.test/api",
        "DFE_LOG_LEVEL": "",
    })
    assert config.autosave_delay_seconds == 0.5
    assert config.api_base_url == "http://other.test/api"
    assert config.log_level == "WARNING"


def test_empty_file(tmp_path):
    path = tmp_path / "dfe.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path, environ={}) == EngineConfig()


@pytest.mark.parametrize("content", [
    "api_base_url: ftp://nope\n",
    "request_timeout_seconds: 0\n",
    "autosave_delay_seconds: -1\n",
    "default_accent_color: orange\n",
    "log_level: LOUD\n",
    "- just\n- a list\n",
    "key: [unclosed\n",
])
def test_invalid_config_raises(tmp_path, content):
    path = tmp_path / "dfe.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path, environ={})
