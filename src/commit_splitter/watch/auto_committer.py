"""
Automatic committing driven by file-system events.

:class:`AutoCommitter` watches a repository with ``watchdog``. Every
event outside ``.git/`` marks a pending change and restarts a debounce
timer. When the timer fires a commit attempt is made, unless a commit
is already running or the previous one finished less than
``min_commit_interval_ms`` ago; such triggers are dropped, not queued.

A commit attempt stages everything (``git add -A``) and runs the split
pipeline with session trailers identifying the watch session.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from commit_splitter.grouping.group_model import CommitResult
from commit_splitter.session.metadata import SessionMetadata, generate_session_id, utc_timestamp
from commit_splitter.vcs.git_client import GitClient, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


@dataclass
class WatchState:
    """Mutable state of one watch session. Guarded by ``AutoCommitter._lock``."""

    commit_in_progress: bool = False
    last_commit_time: float = 0.0
    change_pending: bool = False


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, committer: "AutoCommitter") -> None:
        super().__init__()
        self.committer = committer

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self.committer.notify_change(str(event.src_path))


class AutoCommitter:
    """Debounced auto-commit loop for one repository.

    Parameters
    ----------
    git_client : GitClient
        Client for the watched repository.
    pipeline_factory : Callable
        Called with the :class:`SessionMetadata` for a commit attempt;
        must return an object whose ``run()`` commits the staged changes
        (normally a :class:`~commit_splitter.commit.pipeline.SplitPipeline`).
    debounce_ms : int
        Quiet period after the last event before committing.
    min_commit_interval_ms : int
        Minimum time between the end of one commit and the next attempt.
    clock : Callable[[], float]
        Monotonic clock in seconds; replaceable in tests.
    """

    def __init__(
        self,
        git_client: GitClient,
        pipeline_factory: Callable[[SessionMetadata], object],
        debounce_ms: int = 500,
        min_commit_interval_ms: int = 400,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.git_client = git_client
        self.pipeline_factory = pipeline_factory
        self.debounce_ms = debounce_ms
        self.min_commit_interval_ms = min_commit_interval_ms
        self.clock = clock
        self.session_id = f"watch-{generate_session_id()}"
        self.state = WatchState()
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._observer: Optional[Observer] = None

    @property
    def repo_root(self) -> Path:
        return Path(self.git_client.repo_root)

    def is_ignored(self, path: str) -> bool:
        """Return True for paths inside the repository's ``.git`` directory."""
        candidate = Path(path)
        try:
            parts = candidate.resolve().relative_to(self.repo_root.resolve()).parts
        except ValueError:
            parts = candidate.parts
        return ".git" in parts

    def notify_change(self, path: str) -> None:
        """Record a change and (re)start the debounce timer."""
        if self.is_ignored(path):
            return
        logger.debug("Change detected: %s", path)
        with self._lock:
            self.state.change_pending = True
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_ms / 1000.0, self.try_commit)
            self._timer.daemon = True
            self._timer.start()

    def try_commit(self) -> bool:
        """Make a commit attempt if the guard and interval allow it.

        Returns True when an attempt was made.
        """
        with self._lock:
            if self.state.commit_in_progress:
                logger.debug("Commit already in progress; dropping trigger")
                return False
            elapsed_ms = (self.clock() - self.state.last_commit_time) * 1000.0
            if self.state.last_commit_time and elapsed_ms < self.min_commit_interval_ms:
                logger.debug("Last commit %.0f ms ago; dropping trigger", elapsed_ms)
                return False
            self.state.commit_in_progress = True
            self.state.change_pending = False

        try:
            self.commit_changes()
        except GitError as exc:
            logger.error("Auto-commit failed: %s", exc)
        finally:
            with self._lock:
                self.state.commit_in_progress = False
                self.state.last_commit_time = self.clock()
        return True

    def commit_changes(self) -> List[CommitResult]:
        """Stage everything and split it into commits."""
        self.git_client.stage_all()
        if not self.git_client.has_staged_changes():
            logger.debug("Nothing to commit")
            return []
        metadata = SessionMetadata(
            session_id=self.session_id,
            timestamp=utc_timestamp(),
            prompt="File change auto-commit",
        )
        results = self.pipeline_factory(metadata).run()
        for result in results:
            if not result.skipped:
                logger.info("Auto-committed: %s", result.title)
        return results

    def start(self) -> None:
        """Start watching the repository in a background thread."""
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.repo_root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s", self.repo_root)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop watching and cancel any pending commit trigger."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=timeout)
            self._observer = None
