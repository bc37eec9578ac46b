"""Repository backend implemented on top of the ``git`` command line."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from dailycontrib.services.errors import BackendOperationError


@dataclass(frozen=True, slots=True)
class AuthorIdentity:
    """Commit author identity as configured in the repository."""

    name: str | None
    email: str | None

    @property
    def complete(self) -> bool:
        return bool(self.name) and bool(self.email)


@dataclass(slots=True)
class GitBackend:
    """Stage, diff, commit and push a single path within a local Git repository."""

    repo_path: Path
    git_executable: str = "git"
    remote: str | None = None
    push_ref: str = "HEAD"

    def identity(self) -> AuthorIdentity:
        """Return the configured ``user.name`` / ``user.email`` (``None`` when unset)."""

        return AuthorIdentity(
            name=self._config_value("user.name"),
            email=self._config_value("user.email"),
        )

    def stage(self, path: Path) -> None:
        """Add ``path`` to the index."""

        self._run_git("add", "--", self._relative(path), operation="stage")

    def has_staged_change(self, path: Path) -> bool:
        """Return ``True`` when the index differs from ``HEAD`` for ``path``."""

        result = self._invoke("diff", "--staged", "--quiet", "--", self._relative(path))
        if result.returncode == 0:
            return False
        if result.returncode == 1:
            return True
        raise BackendOperationError("diff", self._diagnostic(result))

    def is_committed(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is part of the ``HEAD`` tree.

        Read-only: neither the index nor the working tree is touched.
        """

        relative = self._relative(path)
        if self._invoke("rev-parse", "--verify", "--quiet", "HEAD").returncode != 0:
            return False
        result = self._run_git("ls-tree", "--name-only", "HEAD", "--", relative, operation="status")
        return bool(result.stdout.strip())

    def commit(self, message: str, path: Path) -> str | None:
        """Commit only ``path`` and return the new commit hash.

        Other staged entries stay in the index. Returns ``None`` when the commit
        was recorded but its hash could not be read back.
        """

        self._run_git("commit", "-m", message, "--only", "--", self._relative(path), operation="commit")
        try:
            return self.head_commit()
        except BackendOperationError:
            return None

    def push(self) -> None:
        """Send the current branch upstream."""

        if self.remote:
            self._run_git("push", self.remote, self.push_ref, operation="push")
        else:
            self._run_git("push", operation="push")

    def head_commit(self) -> str:
        return self._run_git("rev-parse", "HEAD", operation="rev-parse").stdout.strip()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _relative(self, path: Path) -> str:
        """Return ``path`` relative to the repository root."""

        repo = self.repo_path.resolve()
        target = path if path.is_absolute() else repo / path
        try:
            return target.resolve().relative_to(repo).as_posix()
        except ValueError as exc:
            raise BackendOperationError(
                "stage", f"'{path}' is outside the repository '{self.repo_path}'"
            ) from exc

    def _config_value(self, key: str) -> str | None:
        result = self._invoke("config", "--get", key)
        value = result.stdout.strip()
        return value if result.returncode == 0 and value else None

    def _invoke(self, *args: str) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                [self.git_executable, *args],
                cwd=self.repo_path,
                text=True,
                check=False,
                capture_output=True,
            )
        except OSError as exc:
            raise BackendOperationError(args[0], f"unable to run {self.git_executable}: {exc}") from exc

    def _run_git(self, *args: str, operation: str) -> subprocess.CompletedProcess[str]:
        """Execute a Git command within the repository and raise on error."""

        result = self._invoke(*args)
        if result.returncode != 0:
            raise BackendOperationError(operation, self._diagnostic(result))
        return result

    @staticmethod
    def _diagnostic(result: subprocess.CompletedProcess[str]) -> str:
        return (result.stderr or result.stdout or "").strip() or f"exit status {result.returncode}"


__all__ = ["AuthorIdentity", "GitBackend"]
