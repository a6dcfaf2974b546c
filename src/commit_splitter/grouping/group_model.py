"""
Data models for commit grouping.

A file group is a plain ordered ``List[FileChange]``. The outcome
classes below record which path produced a result, the language model
or the rule-based fallback, so callers and tests can tell them apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from commit_splitter.vcs.git_client import FileChange


FileGroup = List[FileChange]


@dataclass
class GroupingOutcome:
    """Result of partitioning the staged files.

    Attributes
    ----------
    groups : List[FileGroup]
        Ordered partition of the input files.
    used_fallback : bool
        True when the rule-based grouper produced ``groups``.
    reason : Optional[str]
        Why the fallback was used, if it was.
    """

    groups: List[FileGroup] = field(default_factory=list)
    used_fallback: bool = False
    reason: Optional[str] = None


@dataclass
class TitleOutcome:
    """A commit title and where it came from."""

    title: str
    used_fallback: bool = False
    reason: Optional[str] = None


@dataclass
class CommitResult:
    """What happened to one group during a commit run."""

    files: List[str]
    title: Optional[str] = None
    used_fallback_title: bool = False
    skipped: bool = False
