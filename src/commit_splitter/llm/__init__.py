"""
Language model integration for commit_splitter.

This package contains the :class:`OllamaClient` for communicating with
an Ollama LLM server, the response fragment types it returns, and the
:class:`FileGrouper` and :class:`TitleGenerator` which use the model to
split staged files into commits and to title them.
"""

from .ollama_client import LLMError, OllamaClient  # noqa: F401
from .file_grouper import FileGrouper  # noqa: F401
from .title_generator import TitleGenerator  # noqa: F401
