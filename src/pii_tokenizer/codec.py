"""Token codec — deterministic, content-addressed placeholders.

Token format: ``DETECTOR_xxxxxxxxxxxx`` where the suffix is the first
12 hex characters of the MD5 digest of the matched text.  The same value
always yields the same token, so independent requests share records.
The inverse is a store lookup, not a function.
"""

from __future__ import annotations
import hashlib
import re

DIGEST_LENGTH = 12

# No word boundaries: adjacent tokens ("ID_...ID_...") must both be found
TOKEN_PATTERN = re.compile(r"[A-Z][A-Z_]*_[a-f0-9]{%d}" % DIGEST_LENGTH)


def fingerprint(text: str) -> str:
    """Fixed-length hex fingerprint of a matched value."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def generate_token(detector_name: str, matched_text: str) -> str:
    return f"{detector_name.upper()}_{fingerprint(matched_text)}"


def is_token(text: str) -> bool:
    return TOKEN_PATTERN.fullmatch(text) is not None


def find_tokens(text: str) -> list[str]:
    """Unique token substrings in first-seen order."""
    return list(dict.fromkeys(m.group() for m in TOKEN_PATTERN.finditer(text)))


def token_spans(text: str) -> list[tuple[int, int]]:
    return [(m.start(), m.end()) for m in TOKEN_PATTERN.finditer(text)]


def candidates(match: str) -> list[str]:
    """The scanned match, then each shorter token ending it.

    "REF_NAME_f640a508c7c9" → ["REF_NAME_f640a508c7c9", "NAME_f640a508c7c9"]
    An uppercase word glued to a token by "_" widens the match.
    """
    out = [match]
    head = match[:-DIGEST_LENGTH - 1]
    for i, c in enumerate(head):
        if c == "_" and i + 1 < len(head) and head[i + 1] != "_":
            out.append(match[i + 1:])
    return out
