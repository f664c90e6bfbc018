"""YAML/dict config loader for pii-tokenizer.

Supports loading from a YAML file or a plain dict (for embedding
in a larger service config).  Environment variables override the
store path, model name and API key.

Example YAML:

    pii_tokenizer:
      store:
        backend: sqlite          # "memory" or "sqlite"
        path: ~/.pii-tokenizer/tokens.db
      model:
        name: gpt-3.5-turbo
        max_tokens: 150
        temperature: 0.7
      detectors:
        - name: dni
          pattern: '\\b\\d{8}[A-Z]\\b'
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Mapping

from .llm import CompletionOptions, OpenAIClient
from .patterns import PatternRegistry
from .pipeline import TokenPipeline
from .store import MemoryTokenStore
from .store_sqlite import SqliteTokenStore

DEFAULT_DB = str(Path.home() / ".pii-tokenizer" / "tokens.db")


def load_config(
    data: dict[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline), applying env overrides."""
    data = data or {}
    env = os.environ if env is None else env
    # Support nested under "pii_tokenizer" key or flat
    if "pii_tokenizer" in data:
        data = data["pii_tokenizer"] or {}

    store = data.get("store") or {}
    model = data.get("model") or {}
    return {
        "store_backend": store.get("backend", "sqlite"),
        "store_path": env.get("PII_TOKENIZER_DB") or store.get("path", DEFAULT_DB),
        "model_name": env.get("PII_TOKENIZER_MODEL") or model.get("name", "gpt-3.5-turbo"),
        "max_tokens": int(model.get("max_tokens", 150)),
        "temperature": float(model.get("temperature", 0.7)),
        "api_key": env.get("OPENAI_API_KEY") or model.get("api_key"),
        "detectors": list(data.get("detectors") or []),
        "port": int(env.get("PII_TOKENIZER_PORT") or data.get("port", 3001)),
    }


def load_from_yaml(path: str | Path, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f), env=env)


def build_registry(detectors: list[dict[str, str]]) -> PatternRegistry:
    """Default detectors followed by configured extras, in file order."""
    registry = PatternRegistry()
    for entry in detectors:
        registry.register(entry["name"], entry["pattern"])
    return registry


def create_store(cfg: dict[str, Any]):
    if cfg["store_backend"] == "memory":
        return MemoryTokenStore()
    if cfg["store_backend"] == "sqlite":
        return SqliteTokenStore(db_path=cfg["store_path"])
    raise ValueError(f"unknown store backend: {cfg['store_backend']}")


def create_pipeline(config: dict[str, Any], *, require_model: bool = False) -> TokenPipeline:
    """Create a fully configured pipeline from a normalized config dict.

    The model client is only built when an API key is available; without
    one the pipeline still serves anonymize/deanonymize.
    """
    model = None
    if config["api_key"] or require_model:
        model = OpenAIClient(config["api_key"])

    return TokenPipeline.create(
        create_store(config),
        model=model,
        registry=build_registry(config["detectors"]),
        options=CompletionOptions(
            max_tokens=config["max_tokens"],
            temperature=config["temperature"],
            model=config["model_name"],
        ),
    )
