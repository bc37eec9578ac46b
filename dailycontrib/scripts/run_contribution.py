"""Create today's contribution and publish it to the Git repository."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from dailycontrib.models.config import ContributionConfig
from dailycontrib.models.contribution import Category, OutcomeKind, RunResult
from dailycontrib.services.catalog import ContentCatalog
from dailycontrib.services.config_loader import load_config
from dailycontrib.services.errors import ConfigError
from dailycontrib.services.gate import ContributionGate
from dailycontrib.services.git_backend import GitBackend
from dailycontrib.services.pipeline import ContributionPipeline
from dailycontrib.services.publisher import RepositoryPublisher

LOGGER = logging.getLogger("dailycontrib.run")


def _json_default(o: Any) -> Any:
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, Enum):
        return o.value
    if is_dataclass(o):
        return asdict(o)
    if isinstance(o, Path):
        return str(o)
    return str(o)


def _configure_logging() -> None:
    """Configure root logging based on ``DAILYCONTRIB_LOG_LEVEL``."""
    level_name = os.getenv("DAILYCONTRIB_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO date: {value}") from exc


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create and publish today's contribution")
    parser.add_argument(
        "--config",
        type=Path,
        default=os.getenv("DAILYCONTRIB_CONFIG"),
        help="Optional YAML configuration file (default: env DAILYCONTRIB_CONFIG)",
    )
    parser.add_argument("--repo", dest="repo_path", type=Path, help="Repository working tree")
    parser.add_argument("--storage-root", type=Path, help="Directory holding the contributions")
    parser.add_argument(
        "--category",
        type=Category.parse,
        choices=list(Category),
        metavar="{" + ",".join(c.value for c in Category) + "}",
        help="Force a category instead of drawing one at random",
    )
    parser.add_argument(
        "--date",
        dest="day",
        type=_parse_date,
        help="ISO date to use instead of today (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--no-push",
        dest="push",
        action="store_false",
        default=None,
        help="Commit locally without pushing upstream",
    )
    parser.add_argument(
        "--stage-existing",
        action="store_true",
        default=None,
        help="Stage an artifact that already exists so external edits are committed",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON summary of the run")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> ContributionConfig:
    overrides = {
        "repo_path": args.repo_path,
        "storage_root": args.storage_root,
        "push": args.push,
        "stage_existing": args.stage_existing,
    }
    return load_config(args.config, overrides=overrides)


def _build_pipeline(config: ContributionConfig) -> ContributionPipeline:
    catalog = ContentCatalog()
    gate = ContributionGate(catalog=catalog, extension=config.extension)
    backend = GitBackend(
        repo_path=config.repo_path,
        git_executable=config.git_executable,
        remote=config.remote,
        push_ref=config.push_ref,
    )
    publisher = RepositoryPublisher(backend=backend, push=config.push)
    return ContributionPipeline(config=config, gate=gate, publisher=publisher)


def _summary(result: RunResult) -> dict[str, Any]:
    artifact = result.artifact
    return {
        "outcome": result.outcome.kind.value,
        "reason": result.outcome.reason,
        "detail": result.outcome.detail,
        "file": artifact.path.name if artifact else None,
        "category": artifact.key.category.value if artifact else None,
        "existed": artifact.existed if artifact else None,
        "commit_message": result.outcome.commit_message,
        "commit_hash": result.outcome.commit_hash,
        "pushed": result.outcome.pushed,
        "states": result.states,
        "warnings": result.warnings,
        "exit_code": result.exit_code,
    }


def _report(result: RunResult, *, quiet: bool = False) -> None:
    """Print the single terminal message for the run.

    With ``quiet`` only failures are printed (to stderr), keeping stdout free
    for the JSON summary.
    """

    outcome = result.outcome
    if quiet and outcome.succeeded:
        return
    filename = result.artifact.path.name if result.artifact else None
    if outcome.kind is OutcomeKind.PUBLISHED:
        suffix = "" if outcome.pushed else " (not pushed)"
        print(f"published: {filename}{suffix}")
    elif outcome.kind is OutcomeKind.NOOP_ALREADY_EXISTS:
        print(f"nothing to do: {filename} already exists")
    elif outcome.kind is OutcomeKind.NOOP_NO_CHANGE:
        print(f"nothing to do: {filename} has no changes to commit")
    else:
        message = f"failed: {outcome.reason}"
        if outcome.detail:
            message += f": {outcome.detail}"
        if outcome.reason == "push" and outcome.commit_hash:
            message += f" (local commit {outcome.commit_hash} was kept)"
        print(message, file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    args = _parse_args(argv)

    try:
        config = _build_config(args)
    except ConfigError as exc:
        print(f"failed: config: {exc}", file=sys.stderr)
        return 2

    LOGGER.info(
        "CONTRIBUTION_START repo=%s storage_root=%s push=%s",
        config.repo_path,
        config.resolved_storage_root,
        config.push,
    )

    pipeline = _build_pipeline(config)
    try:
        result = pipeline.run(today=args.day, category=args.category)
    except Exception:
        LOGGER.exception("Contribution pipeline encountered an unexpected error")
        print("failed: unexpected error (see log)", file=sys.stderr)
        return 1

    for warning in result.warnings:
        LOGGER.warning("CONTRIBUTION_WARNING %s", warning)

    if args.json:
        print(json.dumps(_summary(result), default=_json_default, ensure_ascii=False))
    _report(result, quiet=args.json)
    return result.exit_code


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
