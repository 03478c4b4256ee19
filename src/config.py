"""Unified configuration loaded from .postdesk.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".postdesk.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "postdesk",
]


class StoreConfig(BaseModel):
    """[store] section."""

    directory: str = "./.postdesk"

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()


class SiteConfig(BaseModel):
    """[site] section: publisher identity for documents and JSON-LD."""

    name: str = "postdesk"
    url: str = ""
    lang: str = "en"
    logo_url: str = ""


class SeoConfig(BaseModel):
    """[seo] section."""

    min_content_length: int = 300
    excerpt_max_length: int = 160


class AuthConfig(BaseModel):
    """[auth] section."""

    session_hours: int = 24
    bootstrap_admin_email: str = ""
    secret_key: str = ""


class PostdeskConfig(BaseModel):
    """Top-level configuration model."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    seo: SeoConfig = Field(default_factory=SeoConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)


def load_config(path: str | Path | None = None) -> PostdeskConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .postdesk.toml in CWD
    3. .postdesk.toml, then config.toml, in ~/.config/postdesk/

    Then overlay environment variables.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "postdesk" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    try:
        config = PostdeskConfig.model_validate(data) if data else PostdeskConfig()
    except ValueError as exc:
        logger.warning("Invalid configuration, using defaults: %s", exc)
        config = PostdeskConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: PostdeskConfig, **cli_kwargs: object) -> PostdeskConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).  Keys are ``<section>_<field>`` (``store_directory``,
    ``site_name``, ...).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "store_directory": ("store", "directory"),
        "site_name": ("site", "name"),
        "site_url": ("site", "url"),
        "site_lang": ("site", "lang"),
        "logo_url": ("site", "logo_url"),
        "min_content_length": ("seo", "min_content_length"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return PostdeskConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: PostdeskConfig) -> PostdeskConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "POSTDESK_STORE_DIR": ("store", "directory"),
        "POSTDESK_SITE_NAME": ("site", "name"),
        "POSTDESK_SITE_URL": ("site", "url"),
        "POSTDESK_SITE_LANG": ("site", "lang"),
        "POSTDESK_LOGO_URL": ("site", "logo_url"),
        "POSTDESK_ADMIN_EMAIL": ("auth", "bootstrap_admin_email"),
        "POSTDESK_SECRET_KEY": ("auth", "secret_key"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    hours_raw = os.environ.get("POSTDESK_SESSION_HOURS")
    if hours_raw is not None:
        try:
            data["auth"]["session_hours"] = int(hours_raw)
        except ValueError:
            logger.warning("Ignoring non-integer POSTDESK_SESSION_HOURS=%r", hours_raw)

    return PostdeskConfig.model_validate(data)
