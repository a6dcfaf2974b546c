"""
Wrapper that runs an interactive command and commits as it works.

:class:`SessionWrapper` runs a command (by default the ``claude`` CLI),
echoes its output and watches stdout for lines that show a finished
task, such as a file being updated or a build succeeding. On such a
line, at most once every :data:`AUTO_COMMIT_INTERVAL` seconds, the
working tree is staged and split into commits tagged with the session
trailers. When the command exits, any remaining changes are committed
with metadata parsed from its output and arguments.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import click

from commit_splitter.grouping.group_model import CommitResult
from commit_splitter.session.metadata import SessionMetadata, parse_session_output, utc_timestamp
from commit_splitter.vcs.git_client import GitClient, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_COMMAND = "claude"
AUTO_COMMIT_INTERVAL = 5.0

COMPLETION_PATTERNS = [
    re.compile(r"The file .* has been updated"),
    re.compile(r"File created successfully"),
    re.compile(r"has been updated\. Here's the result"),
    re.compile(r"Here's the result of running.*on.*snippet.*of the edited file"),
    re.compile(r"✅"),
    re.compile(r"Command completed successfully"),
    re.compile(r"Test passed"),
    re.compile(r"Build successful"),
    re.compile(r"Successfully"),
    re.compile(r"completed successfully", re.IGNORECASE),
]


def is_task_completion(text: str) -> bool:
    """Return True if ``text`` looks like the end of a task."""
    return any(pattern.search(text) for pattern in COMPLETION_PATTERNS)


def _child_env() -> dict:
    env = dict(os.environ)
    # Set when running inside another claude session; forces print mode.
    env.pop("CLAUDECODE", None)
    return env


@dataclass
class SessionState:
    """Auto-commit bookkeeping for one wrapped run."""

    task_counter: int = 0
    last_commit_time: float = 0.0


class SessionWrapper:
    """Run ``command`` with ``args`` and auto-commit its changes.

    ``pipeline_factory`` is called with the metadata for each commit and
    must return an object whose ``run()`` commits the staged changes.
    """

    def __init__(
        self,
        git_client: GitClient,
        pipeline_factory: Callable[[SessionMetadata], object],
        command: str = DEFAULT_COMMAND,
        args: Sequence[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.git_client = git_client
        self.pipeline_factory = pipeline_factory
        self.command = command
        self.args = list(args)
        self.clock = clock
        self.state = SessionState()

    def _commit_all(self, metadata: SessionMetadata) -> List[CommitResult]:
        self.git_client.stage_all()
        if not self.git_client.has_staged_changes():
            return []
        return self.pipeline_factory(metadata).run()

    def check_output(self, text: str) -> bool:
        """Auto-commit if ``text`` signals a finished task.

        Returns True when a commit attempt was made.
        """
        if not is_task_completion(text):
            return False
        now = self.clock()
        if self.state.task_counter and now - self.state.last_commit_time <= AUTO_COMMIT_INTERVAL:
            return False
        self.state.last_commit_time = now
        self.state.task_counter += 1
        metadata = SessionMetadata(
            session_id=f"task-{int(time.time() * 1000)}-{self.state.task_counter}",
            timestamp=utc_timestamp(),
            prompt=f"Task {self.state.task_counter} completion",
        )
        try:
            results = self._commit_all(metadata)
        except GitError as exc:
            logger.error("Failed to auto-commit: %s", exc)
            return True
        if results:
            click.echo(f"\n✓ Auto-committed task {self.state.task_counter}")
        return True

    def final_commit(self, stdout: str, stderr: str) -> Optional[SessionMetadata]:
        """Commit whatever is left once the command has exited."""
        metadata = parse_session_output(stdout, stderr, self.args)
        if not self._commit_all(metadata):
            return None
        click.echo(f"\n✓ Final session commit with ID: {metadata.session_id}")
        return metadata

    def run(self) -> int:
        """Run the wrapped command and return its exit code."""
        cmd = [self.command] + self.args
        logger.debug("Starting %s", " ".join(cmd))
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=_child_env(),
            )
        except OSError as exc:
            logger.error("Failed to start %s: %s", self.command, exc)
            return 1

        stderr_lines: List[str] = []

        def _pump_stderr() -> None:
            for line in process.stderr:
                stderr_lines.append(line)
                click.echo(line, nl=False, err=True)

        stderr_thread = threading.Thread(target=_pump_stderr, daemon=True)
        stderr_thread.start()

        stdout_lines: List[str] = []
        for line in process.stdout:
            stdout_lines.append(line)
            click.echo(line, nl=False)
            self.check_output(line)

        returncode = process.wait()
        stderr_thread.join()
        self.final_commit("".join(stdout_lines), "".join(stderr_lines))
        return returncode


def run_untracked(command: str, args: Sequence[str]) -> int:
    """Run ``command`` directly, without any git tracking."""
    try:
        return subprocess.run([command] + list(args), env=_child_env()).returncode
    except OSError as exc:
        logger.error("Failed to start %s: %s", command, exc)
        return 1
