"""Token store — token → original value mapping.

Design goals:
  - Keyed uniquely by token; upsert is last-write-wins
  - Safe to share one instance across request threads
  - Single source of truth: callers keep no cache of their own
"""

from __future__ import annotations
import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenStore(Protocol):
    """What the anonymizer and deanonymizer need from a store.

    Implementations raise StoreUnavailableError when the backend fails,
    and return None from get() only when the token is genuinely absent.
    """

    def upsert(self, token: str, original_value: str) -> None: ...

    def get(self, token: str) -> str | None: ...


class MemoryTokenStore:
    """In-process store for tests and ephemeral deployments."""

    __slots__ = ("_records", "_lock")

    def __init__(self) -> None:
        self._records: dict[str, str] = {}    # NAME_1a2b3c4d5e6f → "Juan Perez"
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def upsert(self, token: str, original_value: str) -> None:
        with self._lock:
            self._records[token] = original_value

    def get(self, token: str) -> str | None:
        with self._lock:
            return self._records.get(token)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._records)

    def dump(self) -> dict[str, str]:
        """Return a copy of the token→original mapping (for debugging)."""
        with self._lock:
            return dict(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def close(self) -> None:
        pass
