"""Idempotency gate ensuring at most one artifact exists per day."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Protocol

from dailycontrib.models.contribution import ArtifactResult, Category, ContributionKey
from dailycontrib.services.errors import StorageError


logger = logging.getLogger(__name__)


class SupportsProduce(Protocol):
    """Subset of :class:`ContentCatalog` relied on by the gate."""

    def produce(self, category: Category, *, today: date | None = None) -> str:
        """Return a complete document body for ``category``."""


def ensure_storage(root: Path) -> Path:
    """Create ``root`` (and parents) when missing and return it."""

    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(f"Unable to create storage directory '{root}': {exc}") from exc
    if not root.is_dir():
        raise StorageError(f"Storage path '{root}' is not a directory")
    return root


def artifact_path(root: Path, key: ContributionKey, extension: str = "md") -> Path:
    """Return the deterministic artifact path for ``key`` under ``root``."""

    candidate = root / key.filename(extension)
    resolved_root = root.resolve()
    if candidate.resolve().parent != resolved_root:
        raise StorageError(f"Artifact path '{candidate}' escapes storage root '{root}'")
    return candidate


@dataclass(slots=True)
class ContributionGate:
    """Check for today's artifact and create it through the catalog when absent."""

    catalog: SupportsProduce
    extension: str = "md"

    def find_existing(self, root: Path, day: date) -> ContributionKey | None:
        """Return the key of an artifact already stored for ``day``, if any."""

        prefix = f"{day.isoformat()}-"
        suffix = f".{self.extension}"
        try:
            names = sorted(entry.name for entry in root.iterdir() if entry.is_file())
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Unable to list storage directory '{root}': {exc}") from exc

        for name in names:
            if not (name.startswith(prefix) and name.endswith(suffix)):
                continue
            value = name[len(prefix) : -len(suffix)]
            try:
                return ContributionKey(day=day, category=Category(value))
            except ValueError:
                continue
        return None

    def ensure_artifact(self, root: Path, day: date, category: Category) -> ArtifactResult:
        """Return the artifact for ``(day, category)``, creating it when absent.

        An existing file is never read, rewritten or truncated.
        """

        key = ContributionKey(day=day, category=category)
        path = artifact_path(root, key, self.extension)

        if path.exists():
            logger.info("CONTRIBUTION_EXISTS file=%s", path.name)
            return ArtifactResult(key=key, path=path, existed=True)

        body = self.catalog.produce(category, today=day)
        created = self._write_new(path, body)
        if not created:
            logger.info("CONTRIBUTION_EXISTS file=%s", path.name)
            return ArtifactResult(key=key, path=path, existed=True)

        logger.info("CONTRIBUTION_CREATED file=%s", path.name)
        return ArtifactResult(key=key, path=path, existed=False)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _write_new(path: Path, body: str) -> bool:
        """Write ``body`` to a temporary sibling and link it into place.

        Returns ``False`` when ``path`` appeared in the meantime; the temporary
        file is removed either way.
        """

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(body)
                handle.flush()
                os.fsync(handle.fileno())
            try:
                os.link(tmp_name, path)
            except FileExistsError:
                return False
            return True
        except OSError as exc:
            raise StorageError(f"Unable to write artifact '{path}': {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass


__all__ = ["ContributionGate", "artifact_path", "ensure_storage"]
