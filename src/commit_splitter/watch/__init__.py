"""
File-watch auto-commit support built on ``watchdog``.
"""

from .auto_committer import AutoCommitter, WatchState  # noqa: F401
