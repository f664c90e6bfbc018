"""PII Tokenizer: reversible, content-addressed PII tokens for LLM pipelines."""

from .anonymizer import Anonymizer
from .deanonymizer import Deanonymizer
from .codec import generate_token, find_tokens, is_token, TOKEN_PATTERN
from .patterns import PatternRegistry, default_registry
from .store import TokenStore, MemoryTokenStore
from .store_sqlite import SqliteTokenStore
from .llm import CompletionOptions, OpenAIClient
from .pipeline import TokenPipeline, build_prompt
from .config import create_pipeline, load_config, load_from_yaml
from .errors import PiiTokenizerError, ValidationError, StoreUnavailableError, ModelCallError
from .types import AnonymizedText, DetectedSpan, Detector, PipelineResult, TokenRecord

__all__ = [
    "Anonymizer", "Deanonymizer",
    "generate_token", "find_tokens", "is_token", "TOKEN_PATTERN",
    "PatternRegistry", "default_registry",
    "TokenStore", "MemoryTokenStore", "SqliteTokenStore",
    "CompletionOptions", "OpenAIClient",
    "TokenPipeline", "build_prompt",
    "create_pipeline", "load_config", "load_from_yaml",
    "PiiTokenizerError", "ValidationError", "StoreUnavailableError", "ModelCallError",
    "AnonymizedText", "DetectedSpan", "Detector", "PipelineResult", "TokenRecord",
]
__version__ = "0.1.0"
