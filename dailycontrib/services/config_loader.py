"""Build :class:`ContributionConfig` from a YAML file and environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from dailycontrib.models.config import ContributionConfig
from dailycontrib.models.contribution import Category
from dailycontrib.services.errors import ConfigError


ENV_PREFIX = "DAILYCONTRIB_"

_ENV_KEYS: dict[str, str] = {
    "storage_root": "STORAGE_ROOT",
    "repo_path": "REPO_PATH",
    "extension": "EXTENSION",
    "use_utc": "USE_UTC",
    "categories": "CATEGORIES",
    "push": "PUSH",
    "remote": "REMOTE",
    "push_ref": "PUSH_REF",
    "git_executable": "GIT",
    "stage_existing": "STAGE_EXISTING",
}

_BOOL_FIELDS = {"use_utc", "push", "stage_existing"}
_PATH_FIELDS = {"storage_root", "repo_path"}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: Any, *, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def parse_categories(value: Any) -> tuple[Category, ...]:
    """Normalise a comma separated string or a list into a category tuple."""

    items = value.split(",") if isinstance(value, str) else value
    if not isinstance(items, (list, tuple)):
        raise ConfigError(f"categories must be a list or comma separated string, got {value!r}")

    categories: list[Category] = []
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        try:
            category = Category.parse(text)
        except ValueError as exc:
            allowed = ", ".join(c.value for c in Category)
            raise ConfigError(f"Unknown category {text!r}; expected one of: {allowed}") from exc
        if category not in categories:
            categories.append(category)

    if not categories:
        raise ConfigError("At least one category must be configured")
    return tuple(categories)


def _coerce(name: str, value: Any) -> Any:
    if name in _BOOL_FIELDS:
        return parse_bool(value, name=name)
    if name in _PATH_FIELDS:
        return Path(str(value)).expanduser()
    if name == "categories":
        return parse_categories(value)
    if name == "extension":
        extension = str(value).strip().lstrip(".")
        if not extension or "/" in extension:
            raise ConfigError(f"Invalid artifact extension: {value!r}")
        return extension
    if value is None:
        return None
    return str(value)


def load_config_file(path: Path) -> dict[str, Any]:
    """Return the mapping stored in a YAML configuration file."""

    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file '{path}' is not valid YAML: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping")

    known = {f.name for f in fields(ContributionConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys in '{path}': {', '.join(unknown)}")
    return dict(payload)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, suffix in _ENV_KEYS.items():
        value = environ.get(f"{ENV_PREFIX}{suffix}")
        if value is not None and value.strip():
            overrides[name] = value
    return overrides


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ContributionConfig:
    """Resolve configuration with precedence overrides > env > file > defaults."""

    values: dict[str, Any] = {}
    if path is not None:
        values.update(load_config_file(path))
    values.update(_env_overrides(os.environ if environ is None else environ))
    values.update({key: value for key, value in (overrides or {}).items() if value is not None})

    config = ContributionConfig()
    resolved = {name: _coerce(name, value) for name, value in values.items()}
    return replace(config, **resolved)


__all__ = ["ENV_PREFIX", "load_config", "load_config_file", "parse_bool", "parse_categories"]
