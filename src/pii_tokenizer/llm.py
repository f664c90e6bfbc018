"""Generative model client, a thin wrapper over the OpenAI SDK.

The client makes exactly one request per call and never retries.
Timeouts and retries, if any, belong to the SDK configuration.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Protocol

from .errors import ModelCallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionOptions:
    max_tokens: int = 100
    temperature: float = 0.7   # 0–2
    model: str = "gpt-3.5-turbo"


class CompletionClient(Protocol):
    def complete(self, prompt: str, options: CompletionOptions | None = None) -> str: ...


class OpenAIClient:
    """Chat-completions client returning the first choice's text."""

    def __init__(self, api_key: str | None, *, client=None) -> None:
        if client is None:
            if not api_key:
                raise ValueError("OpenAI API key is required")
            from openai import OpenAI
            client = OpenAI(api_key=api_key)
        self._client = client

    def complete(self, prompt: str, options: CompletionOptions | None = None) -> str:
        opts = options or CompletionOptions()
        try:
            completion = self._client.chat.completions.create(
                messages=[{"role": "user", "content": prompt}],
                model=opts.model,
                max_tokens=opts.max_tokens,
                temperature=opts.temperature,
            )
            return completion.choices[0].message.content or ""
        except Exception as e:
            logger.error("OpenAI API error: %s", e)
            raise ModelCallError(f"Failed to generate completion: {e}") from e

    def complete_many(
        self,
        prompt: str,
        n: int = 1,
        options: CompletionOptions | None = None,
    ) -> list[str]:
        """Sequential completions for the same prompt.  Any failure aborts the batch."""
        try:
            return [self.complete(prompt, options) for _ in range(n)]
        except ModelCallError as e:
            raise ModelCallError(f"Failed to generate multiple completions: {e}") from e
