"""Core types."""

from __future__ import annotations
import re
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Detector:
    """A named PII matcher."""
    name: str              # e.g. "NAME", "EMAIL", "PHONE"
    pattern: re.Pattern

    def finditer(self, text: str):
        return self.pattern.finditer(text)


@dataclass(frozen=True, slots=True)
class DetectedSpan:
    """A single PII occurrence replaced by a token."""
    detector: str
    start: int             # offsets in the text as that detector saw it
    end: int
    text: str
    token: str


@dataclass(frozen=True, slots=True)
class TokenRecord:
    """Stored association: token → original value."""
    token: str
    original_value: str


@dataclass(slots=True)
class AnonymizedText:
    """Result of anonymizing a message."""
    text: str                                        # tokenized text
    spans: list[DetectedSpan] = field(default_factory=list)
    token_map: dict[str, str] = field(default_factory=dict)  # token → original

    @property
    def records(self) -> list[TokenRecord]:
        return [TokenRecord(token=t, original_value=v) for t, v in self.token_map.items()]


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """All four artifacts of a model round trip."""
    original: str
    anonymized: str
    ai_response: str
    deanonymized: str

    def to_dict(self) -> dict[str, str]:
        return {
            "original": self.original,
            "anonymized": self.anonymized,
            "aiResponse": self.ai_response,
            "deanonymized": self.deanonymized,
        }
