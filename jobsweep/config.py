"""Load pipeline settings and env configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobsweep.log import get_logger

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
REPORTS_DIR: Path = PROJECT_ROOT / "reports"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    provider: str = "brightdata"
    dataset_id: str = "gd_lpfll7v5hcqtkxl6l"
    request_timeout: float = 300.0
    recency_seconds: int = 86400
    title_similarity_threshold: float = 0.85
    culture_min: float = 60
    experience_min: float = 70
    prioritisation_min: float = 70
    repost_cooldown_days: int = 7
    write_report: bool = True


_FLOAT_FIELDS = (
    "request_timeout", "title_similarity_threshold",
    "culture_min", "experience_min", "prioritisation_min",
)
_INT_FIELDS = ("recency_seconds", "repost_cooldown_days")


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def get_data_dir() -> Path:
    override = get_env("JOBSWEEP_DATA_DIR")
    return Path(override) if override else PROJECT_ROOT / "data"


def _flatten(data: dict[str, Any]) -> dict[str, Any]:
    """Accept the nested YAML sections as well as flat keys."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if key == "brightdata" and isinstance(value, dict):
            flat.update({k if k != "timeout" else "request_timeout": v for k, v in value.items()})
        elif key == "reactivation" and isinstance(value, dict):
            flat.update({f"{k}_min" if not k.endswith("_min") else k: v for k, v in value.items()})
        else:
            flat[key] = value
    return flat


def _coerce(values: dict[str, Any]) -> None:
    """Cast numeric settings in place; YAML may hand them over as strings."""
    for key, cast in [(k, float) for k in _FLOAT_FIELDS] + [(k, int) for k in _INT_FIELDS]:
        if key not in values:
            continue
        value = values[key]
        if isinstance(value, bool):
            raise ConfigError(f"{key} must be a number, got {value!r}")
        try:
            values[key] = cast(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if not isinstance(values.get("write_report", True), bool):
        raise ConfigError(f"write_report must be true or false, got {values['write_report']!r}")


def load_settings(path: Path | None = None) -> Settings:
    """Read settings.yaml if present; missing keys keep their defaults.

    ``SCRAPE_PROVIDER`` in the environment overrides the provider name.
    """
    path = path or SETTINGS_PATH
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")

    values = _flatten(data)
    known = set(Settings.__dataclass_fields__)
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {', '.join(unknown)}")

    _coerce(values)

    provider = get_env("SCRAPE_PROVIDER")
    if provider:
        values["provider"] = provider

    try:
        settings = Settings(**values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc

    if not 0.0 <= settings.title_similarity_threshold <= 1.0:
        raise ConfigError("title_similarity_threshold must be between 0 and 1")
    if settings.recency_seconds <= 0:
        raise ConfigError("recency_seconds must be positive")
    log.debug("Loaded settings: %s", settings)
    return settings
