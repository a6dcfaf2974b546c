"""
Rule-based grouping and titling used when the language model is
unavailable or returns something unusable.

Both functions are deterministic: the same input always gives the same
output.
"""

from __future__ import annotations

from typing import List, Sequence

from commit_splitter.grouping.change_classifier import Category, categorize_files
from commit_splitter.vcs.git_client import FileChange, FileStatus


# Configuration and miscellaneous code are committed before tests and
# build artifacts.
GROUP_ORDER = (Category.CONFIG, Category.DOCS, Category.OTHER, Category.TEST, Category.BUILD)

# Title precedence differs from GROUP_ORDER.
TITLE_BY_CATEGORY = (
    (Category.TEST, "test: update tests"),
    (Category.DOCS, "docs: update documentation"),
    (Category.CONFIG, "config: update configuration"),
    (Category.BUILD, "build: update build files"),
)


def fallback_group(files: Sequence[FileChange]) -> List[List[FileChange]]:
    """Group ``files`` by category.

    Non-empty buckets are emitted in the order config, docs, other,
    test, build.
    """
    if not files:
        return []
    buckets = categorize_files(files)
    groups = [buckets[category] for category in GROUP_ORDER if buckets[category]]
    return groups if groups else [list(files)]


def fallback_title(files: Sequence[FileChange]) -> str:
    """Return a canned Conventional Commits title for ``files``."""
    buckets = categorize_files(files)
    for category, title in TITLE_BY_CATEGORY:
        if buckets[category]:
            return title
    if any(change.status is FileStatus.ADDED for change in files):
        return "feat: add new files"
    if any(change.status is FileStatus.DELETED for change in files):
        return "chore: remove files"
    return "refactor: update code"
