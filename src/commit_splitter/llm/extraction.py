"""
Extraction of structured answers from free-form model output.

Models rarely return exactly what was asked for: JSON arrives wrapped in
prose, titles arrive after a sentence of commentary. The functions here
scan the response fragments newest first and pull out the first usable
answer, returning ``None`` when there is none.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Sequence

from commit_splitter.llm.fragments import (
    AssistantFragment,
    OtherFragment,
    ResponseFragment,
    ResultFragment,
    TextBlock,
    fragment_texts,
)


# Greedy: from the first '[' to the last ']'.
JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

CONVENTIONAL_PREFIXES = (
    "feat:",
    "fix:",
    "docs:",
    "refactor:",
    "test:",
    "config:",
    "chore:",
    "style:",
    "perf:",
    "build:",
    "ci:",
    "revert:",
    "wip:",
)

# Phrases showing the model answered conversationally instead of
# emitting a title.
CONVERSATIONAL_PHRASES = (
    "i'll",
    "looking at",
    "based on",
    "here",
    "this",
    "the code",
    "let me",
    "i can see",
    "it appears",
    "from the diff",
    "appears to",
    "wait for your input",
    "what task would you",
    "help you with",
)


def parse_json_array(text: str) -> Any:
    """Decode the JSON array embedded in ``text``.

    The greedy bracket match is tried first so that prose around the
    array is tolerated; without a match the whole text is decoded.

    Raises
    ------
    ValueError
        If no JSON can be decoded.
    """
    stripped = text.strip()
    match = JSON_ARRAY_PATTERN.search(stripped)
    return json.loads(match.group(0) if match else stripped)


def _as_group_paths(value: Any) -> List[List[str]]:
    if not isinstance(value, list):
        raise ValueError("expected a JSON array")
    groups: List[List[str]] = []
    for item in value:
        if not isinstance(item, list) or not all(isinstance(path, str) for path in item):
            raise ValueError("expected an array of arrays of file paths")
        groups.append(list(item))
    return groups


def _primary_text(fragment: ResponseFragment) -> Optional[str]:
    """Return the text a grouping answer is read from, if any."""
    if isinstance(fragment, ResultFragment):
        return fragment.text or None
    if isinstance(fragment, AssistantFragment):
        for block in fragment.blocks:
            if isinstance(block, TextBlock) and block.text:
                return block.text
        return None
    if isinstance(fragment, OtherFragment):
        return None
    raise TypeError(f"Unknown response fragment: {fragment!r}")


def extract_group_paths(fragments: Sequence[ResponseFragment]) -> Optional[List[List[str]]]:
    """Return the grouping answer from the newest fragment that has one.

    Only the first text block of an assistant fragment is considered.
    Fragments whose text cannot be decoded into an array of arrays of
    strings are skipped.
    """
    for fragment in reversed(fragments):
        text = _primary_text(fragment)
        if text is None:
            continue
        try:
            return _as_group_paths(parse_json_array(text))
        except ValueError:
            continue
    return None


def is_valid_commit_title(text: str) -> bool:
    """Return True if ``text`` looks like a commit title rather than chatter."""
    if not text:
        return False
    lowered = text.lower()
    if not lowered.startswith(CONVENTIONAL_PREFIXES):
        return False
    return not any(phrase in lowered for phrase in CONVERSATIONAL_PHRASES)


def _first_valid_line(text: str) -> Optional[str]:
    for line in text.strip().splitlines():
        candidate = line.strip()
        if is_valid_commit_title(candidate):
            return candidate
    return None


def extract_title(fragments: Sequence[ResponseFragment]) -> Optional[str]:
    """Return the first valid title line, scanning fragments newest first."""
    for fragment in reversed(fragments):
        for text in fragment_texts(fragment):
            title = _first_valid_line(text)
            if title is not None:
                return title
    return None
