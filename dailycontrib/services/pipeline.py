"""Orchestration layer that chains storage preparation, the gate and the publisher."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Protocol, Sequence

from dailycontrib.models.config import ContributionConfig
from dailycontrib.models.contribution import (
    ArtifactResult,
    Category,
    ContributionKey,
    PublicationOutcome,
    RunResult,
)
from dailycontrib.services.errors import BackendOperationError, StorageError
from dailycontrib.services.gate import ensure_storage
from dailycontrib.utils.dates import current_date


logger = logging.getLogger(__name__)


class SupportsGate(Protocol):
    """Subset of :class:`ContributionGate` relied on by the pipeline."""

    def find_existing(self, root: Path, day: date) -> ContributionKey | None:
        """Return the key of an artifact already stored for ``day``."""

    def ensure_artifact(self, root: Path, day: date, category: Category) -> ArtifactResult:
        """Return the artifact for ``(day, category)``, creating it when absent."""


class SupportsPublishing(Protocol):
    """Subset of :class:`RepositoryPublisher` relied on by the pipeline."""

    def publish(
        self,
        path: Path,
        *,
        existed: bool,
        warnings: list[str] | None = None,
    ) -> PublicationOutcome:
        """Stage, commit and push ``path``."""

    def is_committed(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is already recorded in history."""


def select_category(categories: Sequence[Category], rng: random.Random) -> Category:
    """Draw one category uniformly from ``categories``."""

    if not categories:
        raise ValueError("At least one category is required")
    return rng.choice(list(categories))


@dataclass(slots=True)
class ContributionPipeline:
    """Produce and publish at most one contribution per day.

    States visited during :meth:`run` are recorded on the result:
    ``init`` -> ``storage_ready`` -> ``decided:existed`` / ``decided:created``
    -> ``published`` / ``noop`` / ``failed``. An existing artifact that was
    never committed (an interrupted earlier run) passes through ``resumed`` and
    is published with the "add" message.
    """

    config: ContributionConfig
    gate: SupportsGate
    publisher: SupportsPublishing
    rng: random.Random = field(default_factory=random.Random)

    def run(self, *, today: date | None = None, category: Category | None = None) -> RunResult:
        """Execute one idempotent generate-and-publish pass."""

        day = today or current_date(use_utc=self.config.use_utc)
        root = self.config.resolved_storage_root
        states = ["init"]
        warnings: list[str] = []

        try:
            ensure_storage(root)
        except StorageError as exc:
            return self._fail(states, warnings, "storage", str(exc))
        states.append("storage_ready")

        try:
            chosen = self._choose_category(root, day, category, warnings)
            artifact = self.gate.ensure_artifact(root, day, chosen)
        except StorageError as exc:
            return self._fail(states, warnings, "storage", str(exc))
        states.append("decided:existed" if artifact.existed else "decided:created")

        existed = artifact.existed
        if existed and not self.config.stage_existing:
            try:
                committed = self.publisher.is_committed(artifact.path)
            except BackendOperationError as exc:
                return self._fail(states, warnings, "stage", exc.diagnostic, artifact=artifact)
            if committed:
                states.append("noop")
                logger.info("CONTRIBUTION_COMPLETE outcome=noop file=%s", artifact.path.name)
                return RunResult(
                    outcome=PublicationOutcome.already_exists(),
                    artifact=artifact,
                    states=states,
                    warnings=warnings,
                )
            states.append("resumed")
            logger.info("CONTRIBUTION_RESUME file=%s is not committed yet", artifact.path.name)
            existed = False

        outcome = self.publisher.publish(artifact.path, existed=existed, warnings=warnings)
        if outcome.succeeded:
            states.append("noop" if outcome.is_noop else "published")
            logger.info("CONTRIBUTION_COMPLETE outcome=%s file=%s", outcome.kind.value, artifact.path.name)
        else:
            states.append("failed")
            logger.error("CONTRIBUTION_FAILED reason=%s detail=%s", outcome.reason, outcome.detail)
        return RunResult(outcome=outcome, artifact=artifact, states=states, warnings=warnings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _choose_category(
        self,
        root: Path,
        day: date,
        requested: Category | None,
        warnings: list[str],
    ) -> Category:
        """Return today's category; an artifact already on disk always wins."""

        existing = self.gate.find_existing(root, day)
        if existing is not None:
            if requested is not None and requested is not existing.category:
                warnings.append(
                    f"Contribution for {day.isoformat()} already exists as "
                    f"'{existing.category.value}'; ignoring requested '{requested.value}'."
                )
            return existing.category
        if requested is not None:
            return requested
        return select_category(self.config.categories, self.rng)

    @staticmethod
    def _fail(
        states: list[str],
        warnings: list[str],
        reason: str,
        detail: str,
        *,
        artifact: ArtifactResult | None = None,
    ) -> RunResult:
        states.append("failed")
        logger.error("CONTRIBUTION_FAILED reason=%s detail=%s", reason, detail)
        return RunResult(
            outcome=PublicationOutcome.failed(reason, detail),
            artifact=artifact,
            states=states,
            warnings=warnings,
        )


__all__ = ["ContributionPipeline", "SupportsGate", "SupportsPublishing", "select_category"]
