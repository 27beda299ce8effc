"""Integration tests for configuration loading with layered precedence.

Exercises load_config() with real YAML files, environment variables and
CLI overrides: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from danmakarr.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "danmakarr-test",
        "environment": "test",
        "http": {"timeout_seconds": 15.0, "proxy": "http://127.0.0.1:8080"},
        "logging": {"level": "DEBUG", "format": "console"},
        "data": {"dir": str(tmp_path / "data")},
        "filter": {"keywords": ["spoiler"], "sources": ["bilibili"]},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "danmakarr"
        assert config.environment == "dev"
        assert config.http_proxy is None
        assert config.log_format == "console"
        assert config.cache_retention_days == 30.0
        assert config.dandanplay.match_mode == "hashAndFileName"
        assert config.filter.keywords == []

    def test_data_paths_derive_from_data_dir(self, tmp_path: Path) -> None:
        config = load_config(cli_overrides={"data_dir": str(tmp_path)})
        assert config.resolution_cache_path == tmp_path / "database.json"
        assert config.comments_dir == tmp_path / "danmaku"
        # loading must not touch the filesystem
        assert list(tmp_path.iterdir()) == []


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "danmakarr-test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_proxy == "http://127.0.0.1:8080"
        assert config.log_level == "DEBUG"
        assert config.data_dir == tmp_path / "data"
        assert config.filter.keywords == ["spoiler"]
        assert config.filter.sources == ["bilibili"]

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_non_mapping_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(config_path=path)

    def test_empty_proxy_means_direct(self, tmp_path: Path) -> None:
        path = tmp_path / "proxy.yaml"
        path.write_text(yaml.dump({"http": {"proxy": "  "}}), encoding="utf-8")
        assert load_config(config_path=path).http_proxy is None


class TestEnvOverrides:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DANMAKARR_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DANMAKARR_CACHE_RETENTION_DAYS", "7")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.cache_retention_days == 7.0
        assert config.app_name == "danmakarr-test"

    def test_env_filter_lists_are_comma_separated(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DANMAKARR_FILTER_KEYWORDS", "foo,bar")
        monkeypatch.setenv("DANMAKARR_FILTER_SOURCES", "gamer,qq")

        config = load_config()
        assert config.filter.keywords == ["foo", "bar"]
        assert config.filter.sources == ["gamer", "qq"]

    def test_dotenv_participates_as_env(self, tmp_path: Path) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("DANMAKARR_ENVIRONMENT=prod\n", encoding="utf-8")

        try:
            config = load_config(dotenv_path=dotenv)
        finally:
            os.environ.pop("DANMAKARR_ENVIRONMENT", None)
        assert config.environment == "prod"
        assert config.log_format == "json"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DANMAKARR_LOG_LEVEL", "WARNING")

        config = load_config(config_path=yaml_config, cli_overrides={"log_level": "ERROR"})
        assert config.log_level == "ERROR"

    def test_invalid_retention_rejected(self) -> None:
        with pytest.raises(ValueError):
            load_config(cli_overrides={"cache": {"retention_days": 0}})
