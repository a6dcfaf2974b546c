"""
Version control integration.

This package contains the :class:`GitClient`, which drives the ``git``
executable to read staged changes, stage and commit file groups, and
query session history.
"""

from .git_client import FileChange, FileStatus, GitClient, GitError  # noqa: F401
