"""Anonymizer — replaces detected PII with tokens and records the mapping.

Usage:
    from pii_tokenizer import Anonymizer, MemoryTokenStore

    store = MemoryTokenStore()
    anonymizer = Anonymizer(store)     # reusable, thread-safe

    result = anonymizer.anonymize("Hola, soy Juan Perez")
    print(result.text)                 # "Hola, soy NAME_1a2b3c4d5e6f"
"""

from __future__ import annotations
import logging

from .codec import generate_token, token_spans
from .patterns import PatternRegistry, default_registry
from .store import TokenStore
from .types import AnonymizedText, DetectedSpan

logger = logging.getLogger(__name__)


class Anonymizer:
    """Applies every registry detector, in order, to the evolving text."""

    def __init__(self, store: TokenStore, registry: PatternRegistry | None = None) -> None:
        self.store = store
        self.registry = registry if registry is not None else default_registry()

    def anonymize(self, text: str) -> AnonymizedText:
        """Tokenize PII in text, persisting every token before returning.

        Each detector sees the output of the previous one, so a later
        detector never matches inside an emitted token.  Store failures
        propagate; no partially tokenized text is returned.
        """
        result = text
        spans: list[DetectedSpan] = []
        token_map: dict[str, str] = {}

        for detector in self.registry:
            # --- Pass 1: match, tokenize, persist ---
            existing = token_spans(result)
            found: list[DetectedSpan] = []
            for m in detector.finditer(result):
                if any(m.start() < e and m.end() > s for s, e in existing):
                    continue
                token = generate_token(detector.name, m.group())
                self.store.upsert(token, m.group())
                found.append(DetectedSpan(
                    detector=detector.name,
                    start=m.start(),
                    end=m.end(),
                    text=m.group(),
                    token=token,
                ))

            # --- Pass 2: substitute (right-to-left to preserve offsets) ---
            for span in reversed(found):
                result = result[:span.start] + span.token + result[span.end:]
                token_map[span.token] = span.text
            spans.extend(found)

        if spans:
            logger.debug("anonymized %d span(s) into %d token(s)", len(spans), len(token_map))
        return AnonymizedText(text=result, spans=spans, token_map=token_map)
