"""
Git client implementation for commit_splitter.

This module wraps the Git operations required by the splitter, the file
watcher and the session wrapper. Git is always invoked as an external
process with the working directory pinned to the repository root. All
subprocess calls go through :meth:`GitClient._run` so that unit tests can
mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


MAX_DIFF_WORKERS = 8


class FileStatus(str, Enum):
    """Staged status of a file, mirroring git's single-letter codes."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNMERGED = "U"
    TYPE_CHANGED = "T"

    @classmethod
    def from_code(cls, code: str) -> "FileStatus":
        """Parse a name-status field such as ``M`` or ``R100``."""
        letter = code.strip()[:1].upper()
        try:
            return cls(letter)
        except ValueError:
            logger.debug("Unknown status code %r; treating as modified", code)
            return cls.MODIFIED


@dataclass(frozen=True)
class FileChange:
    """A single staged file.

    ``diff`` holds the cached unified diff, or the full index content for
    added files. It is empty when the diff could not be retrieved.
    ``old_path`` is the source path of a rename or copy.
    """

    path: str
    status: FileStatus
    diff: str = ""
    old_path: Optional[str] = None

    @property
    def staged_paths(self) -> List[str]:
        """Paths to stage for this change; a rename also removes its source."""
        if self.status is FileStatus.RENAMED and self.old_path:
            return [self.old_path, self.path]
        return [self.path]


class GitError(Exception):
    """Raised when a Git command fails."""

    def __init__(self, message: str, args: Sequence[str] = (), returncode: int = 1) -> None:
        super().__init__(message)
        self.command = list(args)
        self.returncode = returncode


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Return the repository root containing ``start``, or None.

        Uses ``git rev-parse --show-toplevel`` so that worktrees and
        submodules resolve the same way git itself does.
        """
        try:
            result = subprocess.run(
                ["git", "rev-parse", "--show-toplevel"],
                cwd=start,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError) as exc:
            logger.debug("Could not run git in %s: %s", start, exc)
            return None
        if result.returncode != 0 or not result.stdout.strip():
            return None
        return Path(result.stdout.strip())

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command cannot be started, or exits with a non-zero
            status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid characters instead of failing
            )
        except OSError as exc:
            logger.error("Failed to execute git: %s", exc)
            raise GitError(f"Git command failed: {' '.join(full_cmd)} - {exc}", args) from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            detail = result.stderr.strip() or result.stdout.strip()
            raise GitError(
                f"Git command failed: {' '.join(full_cmd)} - {detail}",
                args,
                result.returncode,
            )
        return result

    # ------------------------------------------------------------------
    # Staged change detection
    # ------------------------------------------------------------------
    def get_staged_files(self) -> List[FileChange]:
        """Return the staged (status, path) pairs without diffs.

        Lines with fewer than two tab-separated fields are skipped. For
        renames and copies the destination path is used and the source
        path is kept in ``old_path``.
        """
        result = self._run(["diff", "--cached", "--name-status"])
        changes: List[FileChange] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            if len(parts) < 2:
                logger.debug("Skipping malformed status line: %r", line)
                continue
            status = FileStatus.from_code(parts[0])
            old_path = parts[1] if len(parts) >= 3 else None
            changes.append(FileChange(path=parts[-1], status=status, old_path=old_path))
        return changes

    def get_diff(self, change: FileChange) -> str:
        """Return the cached diff for ``change`` (index content for added files)."""
        if change.status is FileStatus.ADDED:
            return self._run(["show", f":{change.path}"]).stdout
        return self._run(["diff", "--cached", "--", change.path]).stdout

    def _diff_or_empty(self, change: FileChange) -> FileChange:
        try:
            diff = self.get_diff(change)
        except GitError as exc:
            logger.warning("Failed to get diff for %s: %s", change.path, exc)
            diff = ""
        return replace(change, diff=diff)

    def read_staged_changes(self) -> List[FileChange]:
        """Return every staged file together with its diff.

        Diffs are fetched concurrently, one git process per file. A file
        whose diff cannot be read is kept with an empty diff. The result
        preserves the order reported by ``git diff --cached --name-status``.
        """
        staged = self.get_staged_files()
        if not staged:
            return []
        workers = min(MAX_DIFF_WORKERS, len(staged))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self._diff_or_empty, staged))

    def has_staged_changes(self) -> bool:
        """Return True if the index differs from HEAD.

        ``git diff --cached --quiet`` exits with 1 when there are changes
        and 0 when there are none; anything else is an error.
        """
        result = self._run(["diff", "--cached", "--quiet"], check=False)
        if result.returncode in (0, 1):
            return result.returncode == 1
        raise GitError(
            f"Git command failed: git diff --cached --quiet - {result.stderr.strip()}",
            ["diff", "--cached", "--quiet"],
            result.returncode,
        )

    def has_uncommitted_changes(self) -> bool:
        """Return True if the working tree or the index has changes."""
        unstaged = self._run(["diff", "--quiet"], check=False)
        if unstaged.returncode != 0:
            return True
        return self.has_staged_changes()

    # ------------------------------------------------------------------
    # Staging and committing
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Unstage everything, leaving the working tree untouched."""
        self._run(["reset"])

    def stage_files(self, files: Sequence[str]) -> None:
        """Stage exactly the given paths, recording removed paths as deletions."""
        if not files:
            return
        self._run(["add", "-A", "--"] + list(files))

    def stage_all(self) -> None:
        """Stage every change in the working tree, untracked files included."""
        self._run(["add", "-A"])

    def commit(self, message: str) -> None:
        """Create a commit with the given (possibly multi-line) message."""
        self._run(["commit", "-m", message])

    # ------------------------------------------------------------------
    # Stash, branches and history
    # ------------------------------------------------------------------
    def stash_push(self, message: str) -> bool:
        """Stash local changes. Returns False when there was nothing to stash."""
        if not self.has_uncommitted_changes():
            return False
        self._run(["stash", "push", "-m", message])
        return True

    def stash_pop(self) -> None:
        """Restore the most recent stash entry."""
        self._run(["stash", "pop"])

    def verify_commit(self, rev: str) -> bool:
        """Return True if ``rev`` names an existing commit."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], check=False)
        return result.returncode == 0

    def checkout(self, rev: str) -> None:
        self._run(["checkout", rev])

    def create_branch(self, branch_name: str) -> None:
        """Create and switch to a new branch."""
        self._run(["checkout", "-b", branch_name])

    def find_commits_by_trailer(self, trailer: str) -> List[str]:
        """Return hashes of commits whose message contains ``trailer``, newest first."""
        result = self._run(
            ["log", "--all", "--fixed-strings", f"--grep={trailer}", "--format=%H"],
            check=False,
        )
        if result.returncode != 0:
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]

    def log_messages(self, grep: str, limit: Optional[int] = None) -> List[str]:
        """Return raw ``hash NUL date NUL body`` records for matching commits, newest first."""
        args = ["log", "--fixed-strings", f"--grep={grep}", "--format=%H%x00%aI%x00%B%x1e"]
        if limit is not None:
            args.insert(1, f"--max-count={limit}")
        result = self._run(args, check=False)
        if result.returncode != 0:
            return []
        return [record.strip("\n") for record in result.stdout.split("\x1e") if record.strip()]
