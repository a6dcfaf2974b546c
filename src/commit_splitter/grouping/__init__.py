"""
Grouping logic for commit splitting.

This package classifies staged files by path and provides the rule-based
grouping and titling used when the language model cannot be used. See
:mod:`commit_splitter.grouping.change_classifier` and
:mod:`commit_splitter.grouping.fallback` for details.
"""

from .change_classifier import Category, categorize_files, classify  # noqa: F401
from .fallback import fallback_group, fallback_title  # noqa: F401
from .group_model import CommitResult, FileGroup, GroupingOutcome, TitleOutcome  # noqa: F401
