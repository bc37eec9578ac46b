"""Content catalog that renders one Markdown document per contribution category."""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from dailycontrib.models.contribution import ALL_CATEGORIES, Category
from dailycontrib.services.errors import CatalogError
from dailycontrib.utils.dates import current_date, display_date

PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATE_DIR = PACKAGE_DIR / "templates"
DATA_PATH = PACKAGE_DIR / "data" / "catalog.yaml"

_FENCE_LANGUAGES = {"py": "python", "md": "markdown", "ts": "typescript", "js": "javascript"}


def _fence_language(filename: str) -> str:
    """Return the code fence language for ``filename`` based on its extension."""

    suffix = Path(filename).suffix.lstrip(".").lower()
    return _FENCE_LANGUAGES.get(suffix, suffix)


def _build_environment(template_dir: Path) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.filters["fence_language"] = _fence_language
    return env


@lru_cache(maxsize=4)
def load_pools(path: Path = DATA_PATH) -> dict[str, list[Any]]:
    """Load the YAML content pools keyed by category value."""

    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise CatalogError(f"Unable to load catalog data from {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise CatalogError(f"Catalog data in {path} must be a mapping of category pools")
    return {str(key): list(value or []) for key, value in payload.items()}


Handler = Callable[["ContentCatalog", date], str]


def _render_entry(catalog: "ContentCatalog", category: Category, day: date) -> str:
    entry = catalog.draw(category)
    return catalog.render(category, day, entry=entry)


def _render_project(catalog: "ContentCatalog", day: date) -> str:
    entry = catalog.draw(Category.PROJECT)
    if not isinstance(entry, Mapping) or not entry.get("files"):
        raise CatalogError("Project entries must define at least one file")
    return catalog.render(Category.PROJECT, day, entry=entry)


HANDLERS: dict[Category, Handler] = {
    Category.TIL: lambda catalog, day: _render_entry(catalog, Category.TIL, day),
    Category.SNIPPET: lambda catalog, day: _render_entry(catalog, Category.SNIPPET, day),
    Category.NOTE: lambda catalog, day: _render_entry(catalog, Category.NOTE, day),
    Category.PROGRESS: lambda catalog, day: _render_entry(catalog, Category.PROGRESS, day),
    Category.PROJECT: _render_project,
}


@dataclass(slots=True)
class ContentCatalog:
    """Produce complete Markdown documents for each :class:`Category`.

    Documents depend only on the randomly drawn pool entry and the date that is
    embedded in the heading block; the catalog never reads or writes the
    contribution storage.
    """

    rng: random.Random = field(default_factory=random.Random)
    template_dir: Path = TEMPLATE_DIR
    data_path: Path = DATA_PATH
    _env: Environment | None = field(default=None, init=False, repr=False)

    @property
    def categories(self) -> tuple[Category, ...]:
        return ALL_CATEGORIES

    def produce(self, category: Category | str, *, today: date | None = None) -> str:
        """Return the rendered document body for ``category``."""

        try:
            resolved = category if isinstance(category, Category) else Category.parse(category)
        except ValueError as exc:
            raise CatalogError(f"Unknown contribution category: {category!r}") from exc

        handler = HANDLERS.get(resolved)
        if handler is None:
            raise CatalogError(f"No content handler registered for {resolved.value!r}")

        body = handler(self, today or current_date())
        if not body.strip():
            raise CatalogError(f"Catalog produced an empty document for {resolved.value!r}")
        return body.rstrip("\n") + "\n"

    def draw(self, category: Category) -> Any:
        """Pick one pool entry for ``category`` uniformly at random."""

        pool = load_pools(self.data_path).get(category.value)
        if not pool:
            raise CatalogError(f"Catalog pool for {category.value!r} is empty")
        return self.rng.choice(pool)

    def render(self, category: Category, day: date, **context: Any) -> str:
        """Render ``templates/<category>.md.j2`` with ``context``."""

        if self._env is None:
            self._env = _build_environment(self.template_dir)
        try:
            template = self._env.get_template(f"{category.value}.md.j2")
            return template.render(
                display_date=display_date(day),
                date=day.isoformat(),
                category=category.value,
                **context,
            )
        except TemplateError as exc:
            raise CatalogError(f"Failed to render {category.value!r} template: {exc}") from exc


__all__ = ["ContentCatalog", "HANDLERS", "load_pools"]
