"""
Commit title generation using an LLM.

This module provides the :class:`TitleGenerator` class, which asks the
model for a single Conventional Commits title describing one file group.
Model output is screened with
:func:`~commit_splitter.llm.extraction.is_valid_commit_title`; when the
model fails or produces nothing usable, the deterministic
:func:`~commit_splitter.grouping.fallback.fallback_title` is returned
instead. Titles are never longer than ``max_commit_title_length``.
"""

from __future__ import annotations

import logging
from textwrap import dedent
from typing import Sequence

from commit_splitter.grouping.fallback import fallback_title
from commit_splitter.grouping.group_model import TitleOutcome
from commit_splitter.llm.extraction import extract_title
from commit_splitter.llm.ollama_client import LLMError
from commit_splitter.vcs.git_client import FileChange


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def truncate_title(title: str, max_length: int) -> str:
    """Cut ``title`` to ``max_length`` characters, ending in ``...`` if cut."""
    if len(title) <= max_length:
        return title
    return title[: max_length - 3] + "..."


class TitleGenerator:
    """Generate a commit title for a group of staged files."""

    def __init__(
        self,
        llm_client,
        max_title_diff_lines: int = 10,
        max_commit_title_length: int = 50,
        max_turns: int = 2,
    ) -> None:
        self.llm_client = llm_client
        self.max_title_diff_lines = max_title_diff_lines
        self.max_commit_title_length = max_commit_title_length
        self.max_turns = max_turns

    def _diff_sample(self, files: Sequence[FileChange]) -> str:
        samples = []
        for change in files:
            if not change.diff:
                continue
            head = change.diff.split("\n")[: self.max_title_diff_lines]
            samples.append("\n".join(head).replace("\x00", ""))
        return "\n---\n".join(samples)

    def _build_prompt(self, files: Sequence[FileChange]) -> str:
        """Construct the title prompt.

        The prompt lists the files with their status letters, a short
        sample of each diff and the formatting rules. It ends with an
        explicit request for the bare title so that chatty models have
        less room to add commentary.
        """
        file_list = "\n".join(f"{change.path} ({change.status.value})" for change in files)
        rules = dedent(
            f"""
            Rules:
            - Use conventional commit format (feat:, fix:, docs:, refactor:, test:, config:, chore:)
            - Be specific about what changed
            - Maximum {self.max_commit_title_length} characters
            - No quotes or punctuation at the end

            IMPORTANT: Return ONLY the commit title, nothing else. No explanations, no analysis.
            Example output: feat: add user authentication
            """
        ).strip()
        return (
            "Generate a concise git commit title for these changes.\n\n"
            f"Files:\n{file_list}\n\n"
            f"Sample changes:\n{self._diff_sample(files)}\n\n"
            f"{rules}\n\n"
            "Return only the title:"
        )

    def _fallback(self, files: Sequence[FileChange], reason: str) -> TitleOutcome:
        logger.warning("LLM title generation failed, using fallback: %s", reason)
        title = truncate_title(fallback_title(files), self.max_commit_title_length)
        return TitleOutcome(title=title, used_fallback=True, reason=reason)

    def generate_title(self, files: Sequence[FileChange]) -> TitleOutcome:
        """Return a title for ``files``.

        Parameters
        ----------
        files : Sequence[FileChange]
            The files of one commit group.

        Returns
        -------
        TitleOutcome
            The title, at most ``max_commit_title_length`` characters,
            and whether the fallback produced it.
        """
        prompt = self._build_prompt(files)
        try:
            fragments = self.llm_client.complete(prompt, max_turns=self.max_turns)
            title = extract_title(fragments)
        except (LLMError, Exception) as exc:
            return self._fallback(files, str(exc) or type(exc).__name__)

        if title is None:
            return self._fallback(files, "No valid commit title in response")
        logger.debug("LLM proposed title: %s", title)
        return TitleOutcome(title=truncate_title(title, self.max_commit_title_length))
