import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE_NAME = ".spacetraveling.toml"


def _deep_merge(destination: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge source into destination, with source values overwriting."""
    for key, value in source.items():
        if isinstance(value, Mapping) and key in destination and isinstance(destination[key], Mapping):
            destination[key] = _deep_merge(dict(destination[key]), dict(value))
        else:
            destination[key] = value
    return destination


class CMSSettings(BaseModel):
    """Connection and query settings for the Prismic repository."""

    endpoint: str = Field(
        default="https://spacetraveling.cdn.prismic.io/api/v2",
        description="Prismic REST API v2 endpoint",
    )
    access_token: str | None = Field(default=None, description="Prismic access token, if the repo is private")
    document_type: str = Field(default="posts", description="Custom type holding the blog posts")
    listing_page_size: int = Field(default=5, ge=1, description="Posts per listing page")
    # Known behavior: only one article path is pre-generated at build time.
    paths_page_size: int = Field(default=1, ge=1, description="Article paths enumerated at build time")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    ref_ttl: float = Field(default=5.0, ge=0, description="Seconds a fetched master ref is reused")


class SiteSettings(BaseModel):
    """Rendering and regeneration settings."""

    title: str = Field(default="SpaceTraveling", description="Site name used in page titles")
    timezone: str = Field(default="America/Sao_Paulo", description="Timezone used to display dates")
    words_per_minute: int = Field(default=200, ge=1, description="Reading speed for the read time estimate")
    listing_revalidate: int = Field(default=60 * 60, ge=1, description="Listing regeneration window (seconds)")
    article_revalidate: int = Field(
        default=60 * 60 * 24, ge=1, description="Article regeneration window (seconds)"
    )
    output_dir: Path = Field(default=Path("out"), description="Static export directory")
    log_level: str = Field(default="INFO", description="Root log level")


class SpaceTravelingConfig(BaseSettings):
    """Root configuration for SpaceTraveling.

    Supports environment variable overrides with the pattern:
    SPACETRAVELING_SECTION__KEY (e.g., SPACETRAVELING_CMS__ACCESS_TOKEN)
    """

    cms: CMSSettings = Field(default_factory=CMSSettings)
    site: SiteSettings = Field(default_factory=SiteSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="SPACETRAVELING_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls, site_root: Path | None = None) -> "SpaceTravelingConfig":
        """Loads configuration from .spacetraveling.toml and environment variables.

        Priority (highest to lowest):
        1. Environment variables (SPACETRAVELING_SECTION__KEY)
        2. Config file (.spacetraveling.toml in site_root)
        3. Defaults

        Relative ``site.output_dir`` values are resolved against site_root.
        """
        root_path = site_root if site_root is not None else Path.cwd()
        config_file = root_path / CONFIG_FILE_NAME

        file_settings: dict[str, Any] = {}
        if config_file.is_file():
            with config_file.open("rb") as f:
                file_settings = tomllib.load(f)

        env_settings = cls().model_dump(exclude_unset=True)
        merged = _deep_merge(file_settings, env_settings)
        config = cls.model_validate(merged)

        if not config.site.output_dir.is_absolute():
            site = config.site.model_copy(update={"output_dir": root_path / config.site.output_dir})
            config = config.model_copy(update={"site": site})
        return config
