"""Publisher that stages, commits and pushes the day's artifact."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dailycontrib.models.contribution import PublicationOutcome
from dailycontrib.services.errors import BackendIdentityWarning, BackendOperationError
from dailycontrib.services.git_backend import AuthorIdentity


logger = logging.getLogger(__name__)

ADD_MESSAGE = "chore: add daily contribution - {filename}"
UPDATE_MESSAGE = "chore: update daily contribution - {filename}"


class SupportsRepositoryBackend(Protocol):
    """Operations the publisher needs from a version-control backend."""

    def identity(self) -> AuthorIdentity:
        """Return the configured commit author identity."""

    def stage(self, path: Path) -> None:
        """Add ``path`` to the pending change set."""

    def has_staged_change(self, path: Path) -> bool:
        """Return ``True`` when the pending change set is non-empty for ``path``."""

    def is_committed(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is already part of recorded history."""

    def commit(self, message: str, path: Path) -> str | None:
        """Record the pending change to ``path`` only and return its identifier."""

    def push(self) -> None:
        """Send recorded history upstream."""


def commit_message(filename: str, *, existed: bool) -> str:
    """Return the deterministic commit message for ``filename``."""

    template = UPDATE_MESSAGE if existed else ADD_MESSAGE
    return template.format(filename=filename)


@dataclass(slots=True)
class RepositoryPublisher:
    """Publish a single artifact path through a repository backend.

    A push failure leaves the local commit in place; the returned outcome is
    ``Failed("push")`` and still carries the commit hash so callers can see
    that history was recorded locally.
    """

    backend: SupportsRepositoryBackend
    push: bool = True

    def check_identity(self) -> BackendIdentityWarning | None:
        """Return a warning when no author identity is configured.

        The backend's own defaults (environment variables, CI settings) are used
        in that case; a missing identity never fails the run.
        """

        try:
            identity = self.backend.identity()
        except BackendOperationError as exc:
            warning = BackendIdentityWarning(f"Unable to read commit identity: {exc}")
        else:
            if identity.complete:
                return None
            warning = BackendIdentityWarning(
                "Git user not configured; relying on the backend's default identity."
            )
        logger.warning("CONTRIBUTION_WARNING %s", warning)
        return warning

    def is_committed(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is already recorded in history."""

        return self.backend.is_committed(path)

    def publish(
        self,
        path: Path,
        *,
        existed: bool,
        warnings: list[str] | None = None,
    ) -> PublicationOutcome:
        """Stage ``path`` and, when it produced a change, commit and push it.

        Identity warnings are appended to ``warnings`` when a list is supplied.
        """

        warning = self.check_identity()
        if warning is not None and warnings is not None:
            warnings.append(str(warning))

        try:
            self.backend.stage(path)
        except BackendOperationError as exc:
            return PublicationOutcome.failed("stage", exc.diagnostic)

        try:
            changed = self.backend.has_staged_change(path)
        except BackendOperationError as exc:
            return PublicationOutcome.failed("stage", exc.diagnostic)

        if not changed:
            logger.info("CONTRIBUTION_NO_CHANGE file=%s", path.name)
            return PublicationOutcome.already_exists() if existed else PublicationOutcome.no_change()

        return self._commit_and_push(path, existed=existed)

    def _commit_and_push(self, path: Path, *, existed: bool) -> PublicationOutcome:
        message = commit_message(path.name, existed=existed)
        try:
            commit_hash = self.backend.commit(message, path)
        except BackendOperationError as exc:
            return PublicationOutcome.failed("commit", exc.diagnostic, commit_message=message)
        if commit_hash is None:
            logger.warning("CONTRIBUTION_WARNING commit recorded but its hash could not be read")
        logger.info("CONTRIBUTION_COMMITTED message=%r commit=%s", message, commit_hash)

        if not self.push:
            return PublicationOutcome.published(
                commit_message=message, commit_hash=commit_hash, pushed=False
            )

        try:
            self.backend.push()
        except BackendOperationError as exc:
            logger.error(
                "CONTRIBUTION_FAILED step=push commit=%s kept locally: %s", commit_hash, exc.diagnostic
            )
            return PublicationOutcome.failed(
                "push", exc.diagnostic, commit_message=message, commit_hash=commit_hash
            )
        logger.info("CONTRIBUTION_PUSHED commit=%s", commit_hash)
        return PublicationOutcome.published(
            commit_message=message, commit_hash=commit_hash, pushed=True
        )


__all__ = ["ADD_MESSAGE", "UPDATE_MESSAGE", "RepositoryPublisher", "SupportsRepositoryBackend", "commit_message"]
