"""Layered configuration loading: defaults < YAML < env < CLI."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS = frozenset({"http", "logging", "data", "cache", "dandanplay", "filter"})
_TOP_LEVEL = ("app_name", "environment")

# Flat spelling (env vars, CLI flags) -> (section, key) in the YAML shape.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_user_agent": ("http", "user_agent"),
    "http_proxy": ("http", "proxy"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "log_search_results": ("logging", "search_results"),
    "data_dir": ("data", "dir"),
    "cache_retention_days": ("cache", "retention_days"),
    "dandanplay_base_url": ("dandanplay", "base_url"),
    "dandanplay_match_mode": ("dandanplay", "match_mode"),
    "filter_keywords": ("filter", "keywords"),
    "filter_sources": ("filter", "sources"),
    "filter_bilibili_rules": ("filter", "bilibili_rules"),
}


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape; unknown keys are dropped.

    Flat keys win over a section block given in the same layer.
    """
    out: dict[str, Any] = {
        key: dict(value)
        for key, value in layer.items()
        if key in _SECTIONS and isinstance(value, Mapping)
    }
    out.update({key: layer[key] for key in _TOP_LEVEL if key in layer})

    for flat, (section, key) in _FLAT_KEYS.items():
        if flat in layer:
            out.setdefault(section, {})[key] = layer[flat]
    return out


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _merge_layers(layers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the validated AppConfig.

    A ``.env`` file is loaded into the process environment first (existing
    variables win), so it counts as part of the env layer. Nothing is
    created on disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    return AppConfig.model_validate(_merge_layers(layers))
