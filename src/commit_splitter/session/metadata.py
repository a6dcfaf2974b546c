"""
Session metadata attached to commits as trailer lines.

A session commit message is the title, a blank line and then
``Key: value`` trailers::

    feat: add login flow

    Session-ID: abc123
    Prompt: "Fix the bug"
    Time: 2024-01-01T12:00:00+00:00
    Resumed-From: xyz789

Trailers with empty values are left out entirely.
"""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence


SESSION_ID_PATTERN = re.compile(r"Session ID: ([a-zA-Z0-9_-]+)")
SESSION_TRAILER = "Session-ID:"


def utc_timestamp() -> str:
    """Return the current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SessionMetadata:
    """Identifies the session that produced a commit.

    Attributes
    ----------
    session_id : str
        Identifier written as the ``Session-ID`` trailer.
    timestamp : str
        ISO-8601 time written as the ``Time`` trailer.
    prompt : Optional[str]
        The prompt that started the session, if known.
    resumed_from : Optional[str]
        Identifier of the session this one resumed, if any.
    """

    session_id: str
    timestamp: str
    prompt: Optional[str] = None
    resumed_from: Optional[str] = None

    def trailers(self) -> List[str]:
        lines = []
        if self.session_id:
            lines.append(f"{SESSION_TRAILER} {self.session_id}")
        if self.prompt:
            lines.append(f'Prompt: "{self.prompt}"')
        if self.timestamp:
            lines.append(f"Time: {self.timestamp}")
        if self.resumed_from:
            lines.append(f"Resumed-From: {self.resumed_from}")
        return lines


def build_commit_message(title: str, metadata: Optional[SessionMetadata] = None) -> str:
    """Return the commit message for ``title``, with trailers when ``metadata`` is given."""
    if metadata is None:
        return title
    trailers = metadata.trailers()
    if not trailers:
        return title
    return "\n".join([title, ""] + trailers)


def generate_session_id() -> str:
    """Return a fresh identifier built from the current time and random bits."""
    return f"{int(time.time() * 1000):x}-{secrets.token_hex(3)}"


def extract_session_id(stdout: str, stderr: str = "") -> Optional[str]:
    """Find a ``Session ID: <id>`` announcement, looking at stdout before stderr."""
    for stream in (stdout, stderr):
        match = SESSION_ID_PATTERN.search(stream or "")
        if match:
            return match.group(1)
    return None


def extract_resume_id(args: Sequence[str]) -> Optional[str]:
    """Return the value following ``--resume`` in ``args``, if any."""
    args = list(args)
    if "--resume" in args:
        index = args.index("--resume")
        if index < len(args) - 1:
            return args[index + 1]
    return None


def extract_prompt(args: Sequence[str]) -> Optional[str]:
    """Join the non-flag arguments, which are taken to be the prompt."""
    words = [arg for arg in args if not arg.startswith("-")]
    return " ".join(words) if words else None


def parse_session_output(stdout: str, stderr: str, args: Sequence[str]) -> SessionMetadata:
    """Build metadata for a finished run of the wrapped command."""
    return SessionMetadata(
        session_id=extract_session_id(stdout, stderr) or generate_session_id(),
        timestamp=utc_timestamp(),
        prompt=extract_prompt(args),
        resumed_from=extract_resume_id(args),
    )
