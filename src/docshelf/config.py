"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DOCSHELF__SERVER__TRANSPORT=http)
  2. docshelf.yaml          (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional: all fields have sensible defaults, and the
default corpus is the Bun documentation sitemap.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


def _find_config_file() -> str | None:
    """Return the path of the first docshelf.yaml found, or None."""
    candidates = [
        Path("docshelf.yaml"),
        Path(platformdirs.user_config_dir("docshelf")) / "docshelf.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    max_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=3.0, ge=0)


class CacheSettings(BaseModel):
    capacity: int = Field(default=512, ge=1)
    ttl_hours: float = Field(default=12, gt=0)


class SearchSettings(BaseModel):
    max_results: int = Field(default=50, ge=1)
    title_boost: float = 2.0
    prefix: bool = True
    fuzzy: bool = True


class LoaderSettings(BaseModel):
    concurrency: int = Field(default=10, ge=1)


class StaticPage(BaseModel):
    """A fixed document location with optional curated metadata."""

    url: str
    title: str | None = None
    description: str | None = None


class ResourcePage(BaseModel):
    """A page exposed as an MCP resource at ``docshelf://<corpus>/<slug>``."""

    slug: str
    name: str
    url: str
    description: str | None = None


class CorpusSettings(BaseModel):
    name: str
    sitemap_url: str | None = None
    url_prefix: str = ""
    url_suffix: str = ".md"
    pages: list[StaticPage] = []
    # JSON array of paths, each fetched from content_base_url + path
    content_index_url: str | None = None
    content_base_url: str = ""
    # JSON arrays of structured API reference entries
    reference_urls: list[str] = []
    resources: list[ResourcePage] = []
    lazy_content: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Corpus name must be non-empty")
        return v.strip()


def _default_corpora() -> list[CorpusSettings]:
    return [
        CorpusSettings(
            name="bun",
            sitemap_url="https://bun.com/sitemap.xml",
            url_prefix="https://bun.com/docs/",
            url_suffix=".md",
            resources=[
                ResourcePage(
                    slug="installation",
                    name="Bun Installation",
                    description="How to install Bun on macOS, Linux and Windows.",
                    url="https://bun.com/docs/installation.md",
                ),
                ResourcePage(
                    slug="quickstart",
                    name="Bun Quickstart",
                    description="Get started quickly with Bun projects and scripts.",
                    url="https://bun.com/docs/quickstart.md",
                ),
                ResourcePage(
                    slug="bundler",
                    name="Bun.build Bundler",
                    description="Bundle code for the browser with Bun's native bundler.",
                    url="https://bun.com/docs/bundler.md",
                ),
                ResourcePage(
                    slug="runtime/bun-apis",
                    name="Bun Runtime APIs",
                    description="Overview of Bun runtime APIs and compatibility.",
                    url="https://bun.com/docs/runtime/bun-apis.md",
                ),
            ],
        )
    ]


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DOCSHELF__SERVER__PORT=9090
        env_prefix="DOCSHELF__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    fetcher: FetcherSettings = FetcherSettings()
    cache: CacheSettings = CacheSettings()
    search: SearchSettings = SearchSettings()
    loader: LoaderSettings = LoaderSettings()
    corpora: list[CorpusSettings] = Field(default_factory=_default_corpora)
    logging: LoggingSettings = LoggingSettings()

    @field_validator("corpora")
    @classmethod
    def validate_unique_corpora(cls, v: list[CorpusSettings]) -> list[CorpusSettings]:
        names = [corpus.name for corpus in v]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate corpus names: {names}")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )
