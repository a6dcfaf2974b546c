"""
Sequential commit creation for file groups.

All groups are computed against one snapshot of the index, so before
each group the index is reset and only that group's paths are staged
again. Groups are committed strictly one after another: the index is a
single shared resource.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from commit_splitter.grouping.group_model import CommitResult, FileGroup
from commit_splitter.session.metadata import SessionMetadata, build_commit_message
from commit_splitter.vcs.git_client import GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class CommitOrchestrator:
    """Commit file groups one at a time.

    Parameters
    ----------
    git_client : GitClient
        Client for the repository being committed to.
    title_generator : TitleGenerator
        Produces the title for each group. It never raises for model
        failures; it falls back to a rule-based title instead.
    metadata : SessionMetadata, optional
        When given, its trailers are appended to every commit message.
    """

    def __init__(self, git_client: GitClient, title_generator, metadata: Optional[SessionMetadata] = None) -> None:
        self.git_client = git_client
        self.title_generator = title_generator
        self.metadata = metadata

    def commit_group(self, group: FileGroup) -> CommitResult:
        """Stage and commit a single group.

        Raises
        ------
        GitError
            If resetting, staging or committing fails. Commits made
            before the failure are kept.
        """
        paths = [change.path for change in group]
        self.git_client.reset()
        self.git_client.stage_files([p for change in group for p in change.staged_paths])
        if not self.git_client.has_staged_changes():
            logger.warning("No staged changes for %s; skipping group", ", ".join(paths))
            return CommitResult(files=paths, skipped=True)

        outcome = self.title_generator.generate_title(group)
        self.git_client.commit(build_commit_message(outcome.title, self.metadata))
        logger.info("Committed %d file(s): %s", len(paths), outcome.title)
        return CommitResult(files=paths, title=outcome.title, used_fallback_title=outcome.used_fallback)

    def commit_groups(self, groups: Sequence[FileGroup]) -> List[CommitResult]:
        """Commit ``groups`` in order and return one result per group."""
        return [self.commit_group(group) for group in groups]
