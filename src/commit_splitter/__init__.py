"""
Top-level package for commit_splitter.

This package exposes the ``aisplit`` command line tools via the
``commit_splitter.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
