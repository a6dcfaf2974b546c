"""
End-to-end splitting of the staged changes into commits.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from commit_splitter.commit.orchestrator import CommitOrchestrator
from commit_splitter.config.loader import SplitterConfig
from commit_splitter.grouping.group_model import CommitResult, GroupingOutcome
from commit_splitter.llm.file_grouper import FileGrouper
from commit_splitter.llm.ollama_client import OllamaClient
from commit_splitter.llm.title_generator import TitleGenerator
from commit_splitter.session.metadata import SessionMetadata
from commit_splitter.vcs.git_client import FileChange, GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class SplitPipeline:
    """Read staged changes, group them and commit each group."""

    def __init__(
        self,
        git_client: GitClient,
        grouper: FileGrouper,
        title_generator: TitleGenerator,
        metadata: Optional[SessionMetadata] = None,
    ) -> None:
        self.git_client = git_client
        self.grouper = grouper
        self.title_generator = title_generator
        self.metadata = metadata

    @classmethod
    def from_config(
        cls,
        git_client: GitClient,
        config: SplitterConfig,
        metadata: Optional[SessionMetadata] = None,
    ) -> "SplitPipeline":
        """Wire a pipeline to an Ollama server described by ``config``."""
        llm = OllamaClient(
            base_url=config.base_url,
            port=config.port,
            model=config.model,
            request_timeout=config.request_timeout,
            max_tokens=config.max_tokens,
        )
        grouper = FileGrouper(
            llm,
            max_diff_preview_lines=config.max_diff_preview_lines,
            max_turns=config.max_turns,
        )
        titles = TitleGenerator(
            llm,
            max_title_diff_lines=config.max_title_diff_lines,
            max_commit_title_length=config.max_commit_title_length,
            max_turns=config.max_turns,
        )
        return cls(git_client, grouper, titles, metadata)

    def plan(self, files: List[FileChange]) -> GroupingOutcome:
        """Group ``files``; a lone file forms its own group without asking the model."""
        if len(files) == 1:
            return GroupingOutcome(groups=[list(files)])
        return self.grouper.group_files(files)

    def commit_files(self, files: List[FileChange]) -> List[CommitResult]:
        """Group ``files`` and commit each group in order."""
        if not files:
            return []
        outcome = self.plan(files)
        logger.info("Committing %d group(s) from %d file(s)", len(outcome.groups), len(files))
        orchestrator = CommitOrchestrator(self.git_client, self.title_generator, self.metadata)
        return orchestrator.commit_groups(outcome.groups)

    def run(self) -> List[CommitResult]:
        """Split the staged changes into commits.

        Returns an empty list, without touching the index, when nothing
        is staged.
        """
        files = self.git_client.read_staged_changes()
        if not files:
            logger.info("No staged files found")
            return []
        return self.commit_files(files)
