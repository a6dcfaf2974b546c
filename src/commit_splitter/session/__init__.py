"""
Session tracking.

Commits made by the session wrapper and the file watcher carry
``Session-ID`` trailers so that a session can be found and checked out
again later.
"""

from .metadata import SessionMetadata, build_commit_message  # noqa: F401
from .history import SessionNotFoundError, checkout_session, list_sessions, start_session  # noqa: F401
