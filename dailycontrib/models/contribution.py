"""Domain models describing a daily contribution and the outcome of publishing it."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path


class Category(str, Enum):
    """Closed set of contribution kinds the catalog knows how to produce."""

    TIL = "til"
    SNIPPET = "snippet"
    NOTE = "note"
    PROGRESS = "progress"
    PROJECT = "project"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Return the category matching ``value`` (case-insensitive)."""

        return cls(value.strip().lower())


ALL_CATEGORIES: tuple[Category, ...] = tuple(Category)


@dataclass(frozen=True, slots=True)
class ContributionKey:
    """Identify at most one artifact: one calendar day and one category."""

    day: date
    category: Category

    def filename(self, extension: str = "md") -> str:
        """Return the deterministic file name, e.g. ``2024-01-15-til.md``."""

        return f"{self.day.isoformat()}-{self.category.value}.{extension}"


@dataclass(frozen=True, slots=True)
class ArtifactResult:
    """Location of the day's artifact and whether it was already on disk."""

    key: ContributionKey
    path: Path
    existed: bool


class OutcomeKind(str, Enum):
    """Terminal publication states reported by a run."""

    PUBLISHED = "published"
    NOOP_ALREADY_EXISTS = "noop_already_exists"
    NOOP_NO_CHANGE = "noop_no_change"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PublicationOutcome:
    """Ephemeral result of the publish step.

    ``reason`` is only set for failures and names the step that failed
    (``storage``, ``stage``, ``commit`` or ``push``). A ``push`` failure keeps
    ``commit_hash`` populated: the local commit is not rolled back.
    """

    kind: OutcomeKind
    reason: str | None = None
    detail: str | None = None
    commit_message: str | None = None
    commit_hash: str | None = None
    pushed: bool = False

    @classmethod
    def published(
        cls, *, commit_message: str, commit_hash: str | None, pushed: bool
    ) -> "PublicationOutcome":
        return cls(
            kind=OutcomeKind.PUBLISHED,
            commit_message=commit_message,
            commit_hash=commit_hash,
            pushed=pushed,
        )

    @classmethod
    def already_exists(cls) -> "PublicationOutcome":
        return cls(kind=OutcomeKind.NOOP_ALREADY_EXISTS)

    @classmethod
    def no_change(cls) -> "PublicationOutcome":
        return cls(kind=OutcomeKind.NOOP_NO_CHANGE)

    @classmethod
    def failed(
        cls,
        reason: str,
        detail: str | None = None,
        *,
        commit_message: str | None = None,
        commit_hash: str | None = None,
    ) -> "PublicationOutcome":
        return cls(
            kind=OutcomeKind.FAILED,
            reason=reason,
            detail=detail,
            commit_message=commit_message,
            commit_hash=commit_hash,
        )

    @property
    def is_noop(self) -> bool:
        return self.kind in (OutcomeKind.NOOP_ALREADY_EXISTS, OutcomeKind.NOOP_NO_CHANGE)

    @property
    def succeeded(self) -> bool:
        return self.kind is not OutcomeKind.FAILED


@dataclass(slots=True)
class RunResult:
    """Structured summary of one orchestrator run."""

    outcome: PublicationOutcome
    artifact: ArtifactResult | None = None
    states: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome.succeeded

    @property
    def exit_code(self) -> int:
        """Process exit status: zero for published and no-op runs."""

        return 0 if self.succeeded else 1
