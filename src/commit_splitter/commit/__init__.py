"""
Commit creation.

:class:`CommitOrchestrator` commits file groups one at a time and
:class:`SplitPipeline` ties reading, grouping and committing together.
"""

from .orchestrator import CommitOrchestrator  # noqa: F401
from .pipeline import SplitPipeline  # noqa: F401
