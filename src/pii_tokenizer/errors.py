"""Exceptions raised by the tokenization layer."""

from __future__ import annotations


class PiiTokenizerError(Exception):
    """Base class for all pii-tokenizer errors."""


class ValidationError(PiiTokenizerError):
    """A required request field is missing or malformed."""


class StoreUnavailableError(PiiTokenizerError):
    """The token store could not be read or written."""


class ModelCallError(PiiTokenizerError):
    """The generative model call failed."""
