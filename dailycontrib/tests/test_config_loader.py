from __future__ import annotations

from pathlib import Path

import pytest

from dailycontrib.models.config import ContributionConfig
from dailycontrib.models.contribution import ALL_CATEGORIES, Category
from dailycontrib.services.config_loader import load_config, parse_bool, parse_categories
from dailycontrib.services.errors import ConfigError


def test_defaults_without_sources() -> None:
    config = load_config(environ={})

    assert config.extension == "md"
    assert config.use_utc is True
    assert config.push is True
    assert config.stage_existing is False
    assert config.categories == ALL_CATEGORIES
    assert config.resolved_storage_root == config.repo_path / "contributions"


def test_yaml_file_values(tmp_path: Path) -> None:
    path = tmp_path / "dailycontrib.yaml"
    path.write_text(
        "repo_path: /srv/site\n"
        "storage_root: journal\n"
        "categories: [til, note]\n"
        "push: false\n"
        "remote: origin\n",
        encoding="utf-8",
    )

    config = load_config(path, environ={})

    assert config.repo_path == Path("/srv/site")
    assert config.resolved_storage_root == Path("/srv/site/journal")
    assert config.categories == (Category.TIL, Category.NOTE)
    assert config.push is False
    assert config.remote == "origin"


def test_precedence_overrides_env_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("extension: txt\npush: true\nstorage_root: from-file\n", encoding="utf-8")
    environ = {"DAILYCONTRIB_PUSH": "no", "DAILYCONTRIB_STORAGE_ROOT": "from-env"}

    config = load_config(path, environ=environ, overrides={"storage_root": Path("from-cli"), "push": None})

    assert config.extension == "txt"
    assert config.push is False
    assert config.storage_root == Path("from-cli")


def test_absolute_storage_root_is_not_joined() -> None:
    config = ContributionConfig(repo_path=Path("/repo"), storage_root=Path("/data/contrib"))

    assert config.resolved_storage_root == Path("/data/contrib")


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("storage: x\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Unknown configuration keys"):
        load_config(path, environ={})


def test_invalid_yaml_is_config_error(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("push: [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(path, environ={})


def test_parse_categories_from_env_string() -> None:
    assert parse_categories(" TIL, snippet ,til,") == (Category.TIL, Category.SNIPPET)


@pytest.mark.parametrize("value", ["poem", "", " , "])
def test_parse_categories_rejects_bad_input(value: str) -> None:
    with pytest.raises(ConfigError):
        parse_categories(value)


def test_parse_bool() -> None:
    assert parse_bool("Yes", name="push") is True
    assert parse_bool("off", name="push") is False
    with pytest.raises(ConfigError, match="push must be a boolean"):
        parse_bool("maybe", name="push")


def test_extension_is_normalised() -> None:
    assert load_config(environ={"DAILYCONTRIB_EXTENSION": ".txt"}).extension == "txt"
    with pytest.raises(ConfigError):
        load_config(environ={"DAILYCONTRIB_EXTENSION": "a/b"})
