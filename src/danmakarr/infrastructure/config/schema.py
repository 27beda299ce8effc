"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    # Pure: expands "~" but never touches the filesystem.
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _split_csv(value: Any) -> Any:
    # "a,b,c" as written in env vars / the player's option line.
    if isinstance(value, str):
        return [part for part in value.split(",") if part]
    return value


class FilterConfig(BaseModel):
    """Comment block lists (YAML section: filter.*)."""

    keywords: list[str] = Field(
        default_factory=list,
        description="Drop comments containing any of these substrings.",
    )
    sources: list[str] = Field(
        default_factory=list,
        description="Mark comments from these sources as blocked (bilibili, gamer, ...).",
    )
    bilibili_rules: Optional[Path] = Field(
        default=None,
        description="Bilibili block-list JSON export; enabled text rules become keywords.",
    )

    @field_validator("keywords", "sources", mode="before")
    @classmethod
    def _validate_lists(cls, v: Any) -> Any:
        return _split_csv(v)

    @field_validator("bilibili_rules", mode="before")
    @classmethod
    def _validate_rules_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return _normalize_path(v)


class DandanplayConfig(BaseModel):
    """Danmaku provider endpoint (YAML section: dandanplay.*)."""

    base_url: str = Field(
        default="https://api.dandanplay.net/api/v2",
        description="Base URL of the dandanplay-compatible API.",
    )
    match_mode: str = Field(
        default="hashAndFileName",
        description="matchMode sent with content hash matches.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


class AppConfig(BaseModel):
    """Validated runtime configuration.

    Accepts both the sectioned YAML shape (``http.proxy``) and flat names
    (``http_proxy``); load.py merges every layer into the sectioned shape
    before validation.
    """

    # General
    app_name: str = Field(default="danmakarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for all upstream calls.",
    )
    http_user_agent: str = Field(
        default="danmakarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )
    http_proxy: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "http_proxy",
            AliasPath("http", "proxy"),
        ),
        description="Proxy URL for all outgoing requests (empty = direct).",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )
    log_search_results: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "log_search_results",
            AliasPath("logging", "search_results"),
        ),
        description="Log catalog search results (title, episode count) per lookup.",
    )

    # Persisted state (YAML section: data.*)
    data_dir: Path = Field(
        default=Path("./.data/danmakarr"),
        validation_alias=AliasChoices(
            "data_dir",
            AliasPath("data", "dir"),
        ),
        description="Application data root (resolution cache + raw comments).",
    )

    # Resolution cache (YAML section: cache.*)
    cache_retention_days: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "cache_retention_days",
            AliasPath("cache", "retention_days"),
        ),
        description="Resolved episode ids older than this are swept.",
    )

    dandanplay: DandanplayConfig = Field(default_factory=DandanplayConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)

    @field_validator("data_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_proxy", mode="before")
    @classmethod
    def _validate_proxy(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("cache_retention_days")
    @classmethod
    def _validate_retention(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("cache_retention_days must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    @property
    def resolution_cache_path(self) -> Path:
        return self.data_dir / "database.json"

    @property
    def comments_dir(self) -> Path:
        return self.data_dir / "danmaku"


class EnvOverrides(BaseSettings):
    """``DANMAKARR_<FLAT_NAME>`` environment variables, e.g.
    ``DANMAKARR_HTTP_PROXY`` or ``DANMAKARR_FILTER_SOURCES=bilibili,gamer``.

    Unset variables stay None and are left out of the merge.
    """

    model_config = SettingsConfigDict(
        env_prefix="DANMAKARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None
    http_proxy: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None
    log_search_results: Optional[bool] = None

    data_dir: Optional[Path] = None
    cache_retention_days: Optional[float] = None

    dandanplay_base_url: Optional[str] = None
    dandanplay_match_mode: Optional[str] = None

    # Plain strings: pydantic-settings would JSON-decode list fields.
    filter_keywords: Optional[str] = None
    filter_sources: Optional[str] = None
    filter_bilibili_rules: Optional[Path] = None

    @field_validator("data_dir", "filter_bilibili_rules", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
