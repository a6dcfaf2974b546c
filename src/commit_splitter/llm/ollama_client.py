"""
Client for interacting with an Ollama LLM server.

This client wraps HTTP requests to the Ollama chat endpoint
(``/api/chat``). :meth:`OllamaClient.complete` runs a short conversation
bounded by ``max_turns`` and returns the exchange as a list of
:mod:`response fragments <commit_splitter.llm.fragments>`. On error
conditions (connection failures, timeouts, non-200 responses, bodies
that are not JSON) a :class:`LLMError` is raised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from commit_splitter.llm.fragments import (
    AssistantFragment,
    OtherFragment,
    ResponseFragment,
    ResultFragment,
    TextBlock,
)


logger = logging.getLogger(__name__)
# Attach a null handler to avoid errors when the root logger is missing a
# stream. Messages will still propagate to the root logger if configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


FOLLOW_UP_PROMPT = "Your previous reply was empty. Reply with only the requested output."


class LLMError(Exception):
    """Raised when communication with the LLM server fails."""

    pass


def strip_thinking_tags(text: str) -> str:
    """Remove thinking process tags from LLM responses.

    Reasoning models often wrap their chain of thought in XML-like tags
    such as ``<think>`` or ``<reasoning>``. This strips those tags and
    their contents, leaving only the actual output.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    """
    thinking_patterns = [
        r'<think>.*?</think>',
        r'<thinking>.*?</thinking>',
        r'<thought>.*?</thought>',
        r'<reasoning>.*?</reasoning>',
    ]

    result = text
    for pattern in thinking_patterns:
        result = re.sub(pattern, '', result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


@dataclass
class OllamaClient:
    """Client for interacting with an Ollama server.

    Parameters
    ----------
    base_url : str
        Base URL of the Ollama server, e.g. ``"http://localhost"``.
    port : int
        Port number of the Ollama server, e.g. ``11434``.
    model : str
        Name of the model to use for generation, e.g. ``"llama3"``.
    request_timeout : float, optional
        Timeout in seconds for each HTTP request. Defaults to 60 seconds.
    max_tokens : int, optional
        Maximum number of tokens to generate. If provided, passed via
        the ``options`` payload.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None

    def _endpoint(self) -> str:
        return f"{self.base_url}:{self.port}/api/chat"

    def _post(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }
        if self.max_tokens is not None:
            payload["options"] = {"num_predict": self.max_tokens}
        url = self._endpoint()
        logger.debug("Sending request to LLM at %s with %d message(s)", url, len(messages))
        try:
            response = requests.post(url, json=payload, timeout=self.request_timeout)
        except requests.RequestException as exc:
            logger.error("Failed to connect to LLM: %s", exc)
            raise LLMError(str(exc)) from exc
        if response.status_code != 200:
            logger.error(
                "LLM returned non-200 status %s: %s", response.status_code, response.text
            )
            raise LLMError(f"LLM returned status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to parse LLM response: %s", exc)
            raise LLMError("Failed to parse LLM response") from exc
        if not isinstance(data, dict):
            raise LLMError("Unexpected response structure from LLM")
        return data

    @staticmethod
    def _reply_text(data: Dict[str, Any]) -> str:
        # /api/chat puts the reply under 'message'; /api/generate-style
        # servers use a top-level 'response'.
        message = data.get("message")
        if isinstance(message, dict):
            return strip_thinking_tags(str(message.get("content") or ""))
        if "response" in data:
            return strip_thinking_tags(str(data.get("response") or ""))
        raise LLMError("Unexpected response structure from LLM")

    def complete(self, prompt: str, max_turns: int = 2) -> List[ResponseFragment]:
        """Run a conversation of at most ``max_turns`` model turns.

        A further turn is only requested when the model replied with
        nothing. The returned fragments hold one
        :class:`AssistantFragment` per turn, an :class:`OtherFragment`
        with the server's statistics per turn, and a final
        :class:`ResultFragment` when a non-empty reply was obtained.

        Raises
        ------
        LLMError
            If any request fails or the server returns an error.
        """
        messages: List[Dict[str, str]] = [{"role": "user", "content": prompt}]
        fragments: List[ResponseFragment] = []
        reply = ""
        for turn in range(max(1, max_turns)):
            data = self._post(messages)
            reply = self._reply_text(data)
            fragments.append(AssistantFragment(blocks=(TextBlock(reply),)))
            stats = {key: value for key, value in data.items() if key not in ("message", "response")}
            if stats:
                fragments.append(OtherFragment(kind="stats", data=stats))
            if reply:
                break
            logger.debug("Empty reply on turn %d", turn + 1)
            messages.append({"role": "assistant", "content": reply})
            messages.append({"role": "user", "content": FOLLOW_UP_PROMPT})
        if reply:
            fragments.append(ResultFragment(text=reply))
        return fragments
