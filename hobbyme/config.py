"""Configuration loading for the dashboard and the scripts."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, TypedDict, cast

import yaml
from dotenv import load_dotenv

from hobbyme.core.entities import INDOOR, normalise_category
from hobbyme.infrastructure.matching.proximity import DEFAULT_RADIUS_MILES

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class SupabaseConfig(TypedDict, total=False):
    url: str
    key: str


class GeocodingConfig(TypedDict, total=False):
    provider: str
    api_key: str
    user_agent: str
    timeout: int


class MatchingConfig(TypedDict, total=False):
    radius_miles: float
    default_category: str


class StorageConfig(TypedDict, total=False):
    media_bucket: str
    chat_bucket: str


class LoggingConfig(TypedDict, total=False):
    level: str


class AppConfig(TypedDict, total=False):
    supabase: SupabaseConfig
    geocoding: GeocodingConfig
    matching: MatchingConfig
    storage: StorageConfig
    logging: LoggingConfig


_ENV_OVERRIDES: tuple[tuple[str, str, str], ...] = (
    ("SUPABASE_URL", "supabase", "url"),
    ("SUPABASE_KEY", "supabase", "key"),
    ("OPENCAGE_API_KEY", "geocoding", "api_key"),
    ("HOBBYME_LOG_LEVEL", "logging", "level"),
)


def load_config(path: Path = DEFAULT_CONFIG_PATH, *, use_env: bool = True) -> AppConfig:
    """Read the YAML configuration and apply environment overrides.

    A missing file yields an empty configuration so that environment variables
    alone are enough to run the scripts.
    """

    data: object = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}

    if not isinstance(data, dict):
        raise ValueError("The configuration file must contain a mapping at the top level.")

    if use_env:
        load_dotenv()
        for variable, section, key in _ENV_OVERRIDES:
            value = os.getenv(variable, "").strip()
            if not value:
                continue
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][key] = value

    return cast(AppConfig, data)


def get_supabase_credentials(config: AppConfig) -> tuple[str, str]:
    section = cast(SupabaseConfig, config.get("supabase", {}))
    url = str(section.get("url") or "").strip()
    key = str(section.get("key") or "").strip()
    if not url or not key:
        raise KeyError("Configuration is missing the 'supabase.url' or 'supabase.key' entry.")
    return url, key


def get_radius_miles(config: AppConfig) -> float:
    section = cast(MatchingConfig, config.get("matching", {}))
    value = section.get("radius_miles")
    if value is None:
        return DEFAULT_RADIUS_MILES
    radius = float(value)
    if radius < 0:
        raise ValueError(f"matching.radius_miles must be non-negative, got {radius}")
    return radius


def get_default_category(config: AppConfig) -> str:
    section = cast(MatchingConfig, config.get("matching", {}))
    return normalise_category(section.get("default_category") or INDOOR)


def get_log_level(config: AppConfig) -> str:
    section = cast(LoggingConfig, config.get("logging", {}))
    return str(section.get("level") or "INFO").upper()


def get_geocoding_options(config: AppConfig) -> GeocodingConfig:
    section = cast(GeocodingConfig, dict(config.get("geocoding", {})))
    api_key: Optional[str] = section.get("api_key") or None
    provider = section.get("provider") or ("opencage" if api_key else "nominatim")
    options: GeocodingConfig = {
        "provider": provider,
        "user_agent": section.get("user_agent") or "hobbyme",
        "timeout": int(section.get("timeout") or 5),
    }
    if api_key:
        options["api_key"] = api_key
    return options


def get_storage_buckets(config: AppConfig) -> tuple[str, str]:
    section = cast(StorageConfig, config.get("storage", {}))
    return (
        section.get("media_bucket") or "user-media",
        section.get("chat_bucket") or "chat-media",
    )


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "get_default_category",
    "get_geocoding_options",
    "get_log_level",
    "get_radius_miles",
    "get_storage_buckets",
    "get_supabase_credentials",
    "load_config",
]
