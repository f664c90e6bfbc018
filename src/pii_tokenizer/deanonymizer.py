"""Deanonymizer: restores original values for tokens found in text."""

from __future__ import annotations
import logging

from .codec import TOKEN_PATTERN, candidates, find_tokens
from .store import TokenStore

logger = logging.getLogger(__name__)


class Deanonymizer:
    """Resolves token substrings through the store.  Never writes."""

    def __init__(self, store: TokenStore) -> None:
        self.store = store

    def _lookup(self, match: str) -> str | None:
        for token in candidates(match):
            original = self.store.get(token)
            if original is not None:
                # Keep whatever prefix was glued to the token
                return match[:len(match) - len(token)] + original
        return None

    def resolve(self, text: str) -> dict[str, str]:
        """Map every distinct token match in text to its restored form.

        Unknown tokens are omitted.
        """
        resolved: dict[str, str] = {}
        for match in find_tokens(text):
            restored = self._lookup(match)
            if restored is not None:
                resolved[match] = restored
        return resolved

    def deanonymize(self, text: str) -> str:
        """Replace every occurrence of each known token with its original value.

        Unknown tokens (dropped from the store, or invented by a model)
        pass through verbatim.  A store outage propagates.
        """
        resolved = self.resolve(text)
        unresolved = len(find_tokens(text)) - len(resolved)
        if unresolved:
            logger.debug("%d token(s) left unresolved", unresolved)
        if not resolved:
            return text
        # Single pass, so restored values are never rescanned for tokens
        return TOKEN_PATTERN.sub(lambda m: resolved.get(m.group(), m.group()), text)
