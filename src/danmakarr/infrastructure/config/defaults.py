"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "danmakarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": "danmakarr/0.1.0",
        "proxy": None,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
        "search_results": False,
    },
    "data": {
        "dir": "./.data/danmakarr",
    },
    "cache": {
        "retention_days": 30.0,
    },
    "dandanplay": {
        "base_url": "https://api.dandanplay.net/api/v2",
        "match_mode": "hashAndFileName",
    },
    "filter": {
        "keywords": [],
        "sources": [],
        "bilibili_rules": None,
    },
}
