"""Pipeline — sits between a client and a generative model.

Usage:

    store = SqliteTokenStore(db_path="tokens.db")
    pipeline = TokenPipeline.create(store, model=OpenAIClient(api_key))

    # Tokenize only
    safe = pipeline.anonymize_only("Soy Juan Perez")

    # Restore only
    real = pipeline.deanonymize_only(safe)

    # Full round trip through the model
    result = pipeline.process_with_model("Soy Juan Perez, juan@example.com")
    result.deanonymized

Model fidelity is best-effort.  The prompt asks the model to keep tokens
verbatim, but any token it drops or alters cannot be restored, and a
token it invents fails lookup and passes through unchanged.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from .anonymizer import Anonymizer
from .deanonymizer import Deanonymizer
from .errors import ModelCallError
from .llm import CompletionClient, CompletionOptions
from .patterns import PatternRegistry
from .store import TokenStore
from .types import PipelineResult

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    'Given this anonymized message: "{message}", '
    "provide a brief response acknowledging the information. "
    "Keep the tokens (like NAME_xxx, EMAIL_xxx) in your response exactly as written."
)

DEFAULT_OPTIONS = CompletionOptions(max_tokens=150, temperature=0.7)


def build_prompt(anonymized_message: str) -> str:
    return PROMPT_TEMPLATE.format(message=anonymized_message)


@dataclass
class TokenPipeline:
    """anonymize → model → deanonymize, plus each half on its own."""

    anonymizer: Anonymizer
    deanonymizer: Deanonymizer
    model: CompletionClient | None = None
    options: CompletionOptions = DEFAULT_OPTIONS

    @classmethod
    def create(
        cls,
        store: TokenStore,
        *,
        model: CompletionClient | None = None,
        registry: PatternRegistry | None = None,
        options: CompletionOptions | None = None,
    ) -> "TokenPipeline":
        """Factory that wires both halves to the same store."""
        return cls(
            anonymizer=Anonymizer(store, registry),
            deanonymizer=Deanonymizer(store),
            model=model,
            options=options or DEFAULT_OPTIONS,
        )

    def anonymize_only(self, message: str) -> str:
        return self.anonymizer.anonymize(message).text

    def deanonymize_only(self, anonymized_message: str) -> str:
        return self.deanonymizer.deanonymize(anonymized_message)

    def process_with_model(self, message: str) -> PipelineResult:
        """One model call, no retries.  Tokens already stored are kept on failure."""
        if self.model is None:
            raise ModelCallError("no model client configured")

        anonymized = self.anonymize_only(message)
        logger.debug("1. anonymized: %s", anonymized)

        ai_response = self.model.complete(build_prompt(anonymized), self.options)
        logger.debug("2. model response: %s", ai_response)

        deanonymized = self.deanonymize_only(ai_response)
        logger.debug("3. deanonymized response ready (%d chars)", len(deanonymized))

        return PipelineResult(
            original=message,
            anonymized=anonymized,
            ai_response=ai_response,
            deanonymized=deanonymized,
        )
