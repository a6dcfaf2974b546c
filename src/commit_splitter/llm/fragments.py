"""
Response fragments returned by the text-generation client.

A completion is a sequence of fragments in arrival order. Only three
kinds exist: a :class:`ResultFragment` carrying the final decoded text,
an :class:`AssistantFragment` carrying the content blocks of one model
turn, and an :class:`OtherFragment` for anything else (usage statistics,
status messages). Consumers use :func:`fragment_texts` rather than
probing attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class OtherBlock:
    """A non-text content block (tool use, images, ...)."""

    kind: str


ContentBlock = Union[TextBlock, OtherBlock]


@dataclass(frozen=True)
class ResultFragment:
    text: str


@dataclass(frozen=True)
class AssistantFragment:
    blocks: Tuple[ContentBlock, ...] = ()


@dataclass(frozen=True)
class OtherFragment:
    kind: str
    data: Dict[str, Any] = field(default_factory=dict)


ResponseFragment = Union[ResultFragment, AssistantFragment, OtherFragment]


def fragment_texts(fragment: ResponseFragment) -> List[str]:
    """Return the non-empty text payloads carried by ``fragment``."""
    if isinstance(fragment, ResultFragment):
        return [fragment.text] if fragment.text else []
    if isinstance(fragment, AssistantFragment):
        return [block.text for block in fragment.blocks if isinstance(block, TextBlock) and block.text]
    if isinstance(fragment, OtherFragment):
        return []
    raise TypeError(f"Unknown response fragment: {fragment!r}")
