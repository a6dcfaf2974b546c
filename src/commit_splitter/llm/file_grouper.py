"""
Grouping of staged files into logical commits using an LLM.

:class:`FileGrouper` asks the model to partition the staged files and
maps its answer back onto the known :class:`FileChange` objects. Any
failure, whether a transport error, an unparseable answer or an answer
naming none of the staged files, falls back to the rule-based
:func:`~commit_splitter.grouping.fallback.fallback_group`. The returned
partition always contains every input file exactly once.
"""

from __future__ import annotations

import logging
from textwrap import dedent
from typing import Dict, List, Sequence, Set

from commit_splitter.grouping.fallback import fallback_group
from commit_splitter.grouping.group_model import FileGroup, GroupingOutcome
from commit_splitter.llm.extraction import extract_group_paths
from commit_splitter.llm.ollama_client import LLMError
from commit_splitter.vcs.git_client import FileChange


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def convert_paths_to_groups(group_paths: Sequence[Sequence[str]], files: Sequence[FileChange]) -> List[FileGroup]:
    """Map the model's path arrays onto ``files``.

    Unknown paths are dropped, a path already placed in an earlier group
    is not placed again, empty groups are omitted, and every file the
    model did not mention is collected into one trailing group.
    """
    by_path: Dict[str, FileChange] = {change.path: change for change in files}
    placed: Set[str] = set()
    groups: List[FileGroup] = []
    for paths in group_paths:
        group: FileGroup = []
        for path in paths:
            change = by_path.get(path)
            if change is None or path in placed:
                continue
            placed.add(path)
            group.append(change)
        if group:
            groups.append(group)

    leftover = [change for change in files if change.path not in placed]
    if leftover:
        groups.append(leftover)
    return groups


class FileGrouper:
    """Partition staged files into commit groups with an LLM."""

    def __init__(self, llm_client, max_diff_preview_lines: int = 5, max_turns: int = 2) -> None:
        self.llm_client = llm_client
        self.max_diff_preview_lines = max_diff_preview_lines
        self.max_turns = max_turns

    def _file_preview(self, change: FileChange) -> str:
        preview = "\n".join(change.diff.split("\n")[: self.max_diff_preview_lines]) if change.diff else ""
        return f"- {change.path} ({change.status.value})\n  Changes: {preview}"

    def _build_prompt(self, files: Sequence[FileChange]) -> str:
        file_list = "\n\n".join(self._file_preview(change) for change in files)
        instructions = dedent(
            """
            Rules:
            - Group related functionality together
            - Separate configuration from code changes
            - Keep tests with related code OR separate if testing multiple features
            - Documentation changes should be separate unless directly related
            - Bug fixes separate from new features
            - Don't create too many tiny commits - combine related changes

            Return a JSON array where each element is an array of file paths to commit together:
            [
              ["file1.ts", "file2.ts"],
              ["config.json"],
              ["README.md"]
            ]

            Return ONLY the JSON array, no other text.
            """
        ).strip()
        header = (
            "Analyze these staged git files and group them into logical commits. "
            "Each group should be a cohesive set of changes."
        )
        return f"{header}\n\nFiles:\n{file_list}\n\n{instructions}"

    def _fallback(self, files: Sequence[FileChange], reason: str) -> GroupingOutcome:
        logger.warning("LLM grouping failed, using simple fallback: %s", reason)
        return GroupingOutcome(groups=fallback_group(files), used_fallback=True, reason=reason)

    def group_files(self, files: Sequence[FileChange]) -> GroupingOutcome:
        """Partition ``files`` into ordered commit groups.

        Never raises for LLM problems; see :class:`GroupingOutcome` for
        how the fallback path is reported.
        """
        if not files:
            return GroupingOutcome()

        prompt = self._build_prompt(files)
        try:
            fragments = self.llm_client.complete(prompt, max_turns=self.max_turns)
            group_paths = extract_group_paths(fragments)
        except (LLMError, Exception) as exc:
            return self._fallback(files, str(exc) or type(exc).__name__)

        if group_paths is None:
            return self._fallback(files, "No valid response found in messages")

        known = {change.path for change in files}
        if not any(path in known for paths in group_paths for path in paths):
            return self._fallback(files, "Response did not name any staged file")
        return GroupingOutcome(groups=convert_paths_to_groups(group_paths, files))
