"""
Configuration loading for commit_splitter.

Provides a loader for the optional JSON configuration file stored in the
user's home directory. See :mod:`commit_splitter.config.loader` for
implementation details.
"""

from .loader import ConfigError, SplitterConfig, load_config  # noqa: F401
