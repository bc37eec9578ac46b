"""Tests for the contribution CLI runner."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Iterator

import pytest

from conftest import git
from dailycontrib.models.config import ContributionConfig
from dailycontrib.models.contribution import (
    ArtifactResult,
    Category,
    ContributionKey,
    PublicationOutcome,
    RunResult,
)
from dailycontrib.scripts import run_contribution


@dataclass(slots=True)
class StubPipeline:
    """Pipeline that records run arguments and returns a canned result."""

    result: RunResult
    calls: list[dict[str, Any]] = field(default_factory=list, init=False)

    def run(self, *, today: date | None = None, category: Category | None = None) -> RunResult:
        self.calls.append({"today": today, "category": category})
        return self.result


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.NOTSET)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


@contextmanager
def _capture_logs() -> Iterator[list[str]]:
    logger = logging.getLogger("dailycontrib.run")
    handler = _ListHandler()
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        yield handler.messages
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)


def _artifact(existed: bool = False) -> ArtifactResult:
    key = ContributionKey(day=date(2024, 1, 15), category=Category.TIL)
    return ArtifactResult(key=key, path=Path("/repo/contributions/2024-01-15-til.md"), existed=existed)


def _patch(monkeypatch: pytest.MonkeyPatch, pipeline: StubPipeline) -> None:
    monkeypatch.setattr(run_contribution, "_configure_logging", lambda: None)
    monkeypatch.setattr(run_contribution, "_build_pipeline", lambda config: pipeline)
    for key in ("DAILYCONTRIB_CONFIG", "DAILYCONTRIB_CATEGORIES", "DAILYCONTRIB_PUSH"):
        monkeypatch.delenv(key, raising=False)


def test_cli_published(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    outcome = PublicationOutcome.published(
        commit_message="chore: add daily contribution - 2024-01-15-til.md", commit_hash="abc", pushed=True
    )
    pipeline = StubPipeline(result=RunResult(outcome=outcome, artifact=_artifact(), states=["init"]))
    _patch(monkeypatch, pipeline)

    with _capture_logs() as log_messages:
        exit_code = run_contribution.main(["--date", "2024-01-15", "--category", "til", "--json"])
    captured = capsys.readouterr()
    payload = json.loads(captured.out)

    assert exit_code == 0
    assert pipeline.calls == [{"today": date(2024, 1, 15), "category": Category.TIL}]
    assert payload["outcome"] == "published"
    assert payload["file"] == "2024-01-15-til.md"
    assert payload["commit_message"] == "chore: add daily contribution - 2024-01-15-til.md"
    assert "published:" not in captured.out
    assert captured.err == ""
    assert any("CONTRIBUTION_START" in line for line in log_messages)


def test_cli_noop_exits_zero(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    pipeline = StubPipeline(
        result=RunResult(
            outcome=PublicationOutcome.already_exists(),
            artifact=_artifact(existed=True),
            warnings=["Git user not configured; relying on the backend's default identity."],
        )
    )
    _patch(monkeypatch, pipeline)

    with _capture_logs() as log_messages:
        exit_code = run_contribution.main([])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert captured.out.strip() == "nothing to do: 2024-01-15-til.md already exists"
    assert any("CONTRIBUTION_WARNING Git user not configured" in line for line in log_messages)


def test_cli_push_failure_exits_non_zero(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    outcome = PublicationOutcome.failed(
        "push", "fatal: No configured push destination.", commit_hash="abc123"
    )
    _patch(monkeypatch, StubPipeline(result=RunResult(outcome=outcome, artifact=_artifact())))

    exit_code = run_contribution.main([])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert captured.out == ""
    assert captured.err.startswith("failed: push: fatal: No configured push destination.")
    assert "local commit abc123 was kept" in captured.err


def test_cli_unexpected_error(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    class ExplodingPipeline:
        def run(self, **kwargs: Any) -> RunResult:
            raise RuntimeError("boom")

    monkeypatch.setattr(run_contribution, "_configure_logging", lambda: None)
    monkeypatch.setattr(run_contribution, "_build_pipeline", lambda config: ExplodingPipeline())

    exit_code = run_contribution.main([])

    assert exit_code == 1
    assert "failed: unexpected error" in capsys.readouterr().err


def test_cli_config_error_exits_two(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    monkeypatch.setattr(run_contribution, "_configure_logging", lambda: None)
    monkeypatch.setenv("DAILYCONTRIB_CATEGORIES", "poem")

    exit_code = run_contribution.main([])

    assert exit_code == 2
    assert "Unknown category 'poem'" in capsys.readouterr().err


def test_cli_flags_flow_into_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: list[ContributionConfig] = []
    pipeline = StubPipeline(result=RunResult(outcome=PublicationOutcome.no_change(), artifact=_artifact()))
    _patch(monkeypatch, pipeline)
    monkeypatch.setattr(run_contribution, "_build_pipeline", lambda config: seen.append(config) or pipeline)

    run_contribution.main(["--repo", str(tmp_path), "--storage-root", "daily", "--no-push", "--stage-existing"])

    assert seen[0].repo_path == tmp_path
    assert seen[0].resolved_storage_root == tmp_path / "daily"
    assert seen[0].push is False
    assert seen[0].stage_existing is True


def test_cli_end_to_end_against_git(
    monkeypatch: pytest.MonkeyPatch, capsys: Any, repo: Path, remote_repo: Path
) -> None:
    monkeypatch.setattr(run_contribution, "_configure_logging", lambda: None)
    for key in ("DAILYCONTRIB_CONFIG", "DAILYCONTRIB_CATEGORIES", "DAILYCONTRIB_PUSH", "DAILYCONTRIB_STORAGE_ROOT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DAILYCONTRIB_REMOTE", "origin")
    argv = ["--repo", str(repo), "--date", "2024-01-15", "--category", "til"]

    first = run_contribution.main(argv)
    first_out = capsys.readouterr().out
    second = run_contribution.main(argv)
    second_out = capsys.readouterr().out

    assert first == 0 and "published: 2024-01-15-til.md" in first_out
    assert second == 0 and "nothing to do" in second_out
    assert (repo / "contributions" / "2024-01-15-til.md").read_text(encoding="utf-8").startswith("# TIL: ")
    assert git(repo, "log", "-1", "--pretty=%B").stdout.strip() == (
        "chore: add daily contribution - 2024-01-15-til.md"
    )


def test_cli_json_failure_keeps_stdout_parseable(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    outcome = PublicationOutcome.failed("stage", "fatal: index.lock exists")
    _patch(monkeypatch, StubPipeline(result=RunResult(outcome=outcome, artifact=_artifact())))

    exit_code = run_contribution.main(["--json"])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert json.loads(captured.out)["reason"] == "stage"
    assert captured.err.strip() == "failed: stage: fatal: index.lock exists"


def test_cli_without_json_prints_terminal_line(monkeypatch: pytest.MonkeyPatch, capsys: Any) -> None:
    outcome = PublicationOutcome.published(
        commit_message="chore: add daily contribution - 2024-01-15-til.md", commit_hash="abc", pushed=False
    )
    _patch(monkeypatch, StubPipeline(result=RunResult(outcome=outcome, artifact=_artifact())))

    exit_code = run_contribution.main([])

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "published: 2024-01-15-til.md (not pushed)"
