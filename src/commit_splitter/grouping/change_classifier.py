"""
Path-based classification of staged files.

The classifier maps a repository-relative path onto one of a small set
of categories. It is pure and deterministic so that the rule-based
fallbacks built on top of it can be unit tested without a language
model. Predicates are evaluated in order and the first match wins: a
path such as ``config/test_settings.py`` is a config file, not a test.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, List, Tuple

from commit_splitter.vcs.git_client import FileChange


class Category(str, Enum):
    CONFIG = "config"
    TEST = "test"
    DOCS = "docs"
    BUILD = "build"
    OTHER = "other"


CONFIG_SUFFIXES = (".json", ".toml", ".yaml", ".yml")
TEST_SUFFIXES = (
    ".test.ts",
    ".spec.ts",
    ".test.js",
    ".spec.js",
    ".test.tsx",
    ".spec.tsx",
    "_test.py",
    "_test.go",
    "_spec.rb",
)
DOCS_SUFFIXES = (".md", ".rst")
LOCK_SUFFIXES = (".lock", "-lock.json", "-lock.yaml")


def _is_config(path: str) -> bool:
    return path.endswith(CONFIG_SUFFIXES) or "config" in path


def _is_test(path: str) -> bool:
    return "test" in path or "spec" in path or path.endswith(TEST_SUFFIXES)


def _is_docs(path: str) -> bool:
    return path.endswith(DOCS_SUFFIXES) or "docs/" in path


def _is_build(path: str) -> bool:
    return "build" in path or "dist" in path or path.endswith(LOCK_SUFFIXES)


# Order matters: first match wins.
_PREDICATES: Tuple[Tuple[Category, Callable[[str], bool]], ...] = (
    (Category.CONFIG, _is_config),
    (Category.TEST, _is_test),
    (Category.DOCS, _is_docs),
    (Category.BUILD, _is_build),
)


def classify(path: str) -> Category:
    """Return the :class:`Category` of ``path``.

    Parameters
    ----------
    path : str
        Path to the file relative to the repository root.

    Returns
    -------
    Category
        The first category whose predicate matches, or
        :attr:`Category.OTHER` when none does.
    """
    for category, matches in _PREDICATES:
        if matches(path):
            return category
    return Category.OTHER


def categorize_files(files: Iterable[FileChange]) -> Dict[Category, List[FileChange]]:
    """Bucket ``files`` by category, preserving input order within each bucket.

    Every category is present in the returned mapping, possibly with an
    empty list.
    """
    buckets: Dict[Category, List[FileChange]] = {category: [] for category in Category}
    for change in files:
        buckets[classify(change.path)].append(change)
    return buckets
