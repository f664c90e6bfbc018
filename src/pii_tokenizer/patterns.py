"""Pattern registry — ordered regex detectors for PII.

Detectors run in registration order.  An earlier detector claims its
spans first; later detectors only see what is left after tokenization.
The default set targets Spanish/Latin American messages: full names,
emails and ten-digit phone numbers.
"""

from __future__ import annotations
import re
from typing import Iterator

from .types import Detector

_DETECTOR_NAME = re.compile(r"[A-Z][A-Z_]*")

# Each entry: (detector_name, regex)
DEFAULT_PATTERNS: list[tuple[str, str]] = [
    # Two or more capitalised words, accented letters allowed
    ("NAME", r"[A-ZÁ-Ú][a-zá-ú]+(?:\s+[A-ZÁ-Ú][a-zá-ú]+)+"),

    ("EMAIL", r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}"),

    # Ten-digit national number (Colombian mobile format)
    ("PHONE", r"\b\d{10}\b"),
]


class PatternRegistry:
    """Ordered mapping of detector name → matcher."""

    __slots__ = ("_detectors",)

    def __init__(self, patterns: list[tuple[str, str]] | None = None) -> None:
        self._detectors: dict[str, Detector] = {}
        for name, pattern in DEFAULT_PATTERNS if patterns is None else patterns:
            self.register(name, pattern)

    def register(self, name: str, pattern: str | re.Pattern) -> Detector:
        """Append a detector.  Names are upper-cased and must be unique."""
        name = name.upper()
        if not _DETECTOR_NAME.fullmatch(name):
            raise ValueError(f"invalid detector name: {name!r}")
        if name in self._detectors:
            raise ValueError(f"detector already registered: {name}")
        compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
        detector = Detector(name=name, pattern=compiled)
        self._detectors[name] = detector
        return detector

    def scan(self, name: str, text: str) -> list[tuple[int, int, str]]:
        """Return (start, end, text) for every match of one detector, left to right."""
        return [(m.start(), m.end(), m.group()) for m in self._detectors[name].finditer(text)]

    @property
    def names(self) -> list[str]:
        return list(self._detectors)

    def __iter__(self) -> Iterator[Detector]:
        return iter(list(self._detectors.values()))

    def __len__(self) -> int:
        return len(self._detectors)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.upper() in self._detectors


def default_registry() -> PatternRegistry:
    return PatternRegistry()
