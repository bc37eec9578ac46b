"""Explicit configuration threaded into the contribution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from dailycontrib.models.contribution import ALL_CATEGORIES, Category


@dataclass(frozen=True, slots=True)
class ContributionConfig:
    """Settings for a single run against one repository.

    ``storage_root`` is resolved against ``repo_path`` when relative.
    """

    repo_path: Path = field(default_factory=Path.cwd)
    storage_root: Path = Path("contributions")
    extension: str = "md"
    use_utc: bool = True
    categories: tuple[Category, ...] = ALL_CATEGORIES
    push: bool = True
    remote: str | None = None
    push_ref: str = "HEAD"
    git_executable: str = "git"
    stage_existing: bool = False

    @property
    def resolved_storage_root(self) -> Path:
        if self.storage_root.is_absolute():
            return self.storage_root
        return self.repo_path / self.storage_root
