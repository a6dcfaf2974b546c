"""
Navigation of session history recorded in commit trailers.

Commits created by the session wrapper and the watcher carry a
``Session-ID`` trailer (see :mod:`commit_splitter.session.metadata`).
The helpers here find those commits again, check them out and start
new session branches. They return data; printing is left to the CLI.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from commit_splitter.session.metadata import SESSION_TRAILER
from commit_splitter.vcs.git_client import GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


BRANCH_PREFIX = "session/"
LIST_LIMIT = 10

_TRAILER_VALUE = re.compile(r"^Session-ID: (\S+)", re.MULTILINE)


class SessionNotFoundError(Exception):
    """Raised when neither a commit nor a session matches the given name."""

    pass


@dataclass
class SessionEntry:
    """One session commit as shown by ``list``."""

    commit: str
    session_id: str
    date: str

    @property
    def short_hash(self) -> str:
        return self.commit[:7]


def checkout_session(git: GitClient, session_or_commit: str) -> str:
    """Check out a commit or the newest commit of a session.

    ``session_or_commit`` is first tried as a revision. If it does not
    name a commit it is treated as a session identifier and the most
    recent commit carrying ``Session-ID: <id>`` is checked out.

    Returns
    -------
    str
        The revision that was checked out.

    Raises
    ------
    SessionNotFoundError
        If nothing matches.
    GitError
        If the checkout itself fails.
    """
    if git.verify_commit(session_or_commit):
        git.checkout(session_or_commit)
        return session_or_commit

    commits = git.find_commits_by_trailer(f"{SESSION_TRAILER} {session_or_commit}")
    logger.debug("Commits for session %s: %s", session_or_commit, commits)
    if not commits:
        raise SessionNotFoundError(f"No commits found for session ID or hash: {session_or_commit}")
    git.checkout(commits[0])
    return commits[0]


def session_branch_name(name: str, now: Optional[datetime] = None) -> str:
    """Return ``session/<name>-<timestamp>`` with a ref-safe timestamp."""
    stamp = (now or datetime.now()).isoformat(timespec="milliseconds")
    return f"{BRANCH_PREFIX}{name}-{stamp.replace(':', '-').replace('.', '-')}"


def start_session(git: GitClient, name: str, now: Optional[datetime] = None) -> str:
    """Create and switch to a new session branch, returning its name."""
    branch = session_branch_name(name, now)
    git.create_branch(branch)
    return branch


def _parse_record(record: str) -> Optional[SessionEntry]:
    parts = record.split("\x00", 2)
    if len(parts) != 3:
        logger.debug("Skipping malformed log record: %r", record)
        return None
    commit, date, body = parts
    match = _TRAILER_VALUE.search(body)
    return SessionEntry(
        commit=commit.strip(),
        session_id=match.group(1) if match else "unknown",
        date=date.strip(),
    )


def list_sessions(git: GitClient, limit: int = LIST_LIMIT) -> List[SessionEntry]:
    """Return the ``limit`` most recent session commits, oldest first."""
    entries = []
    for record in git.log_messages(SESSION_TRAILER, limit=limit):
        entry = _parse_record(record)
        if entry is not None:
            entries.append(entry)
    entries.reverse()
    return entries
