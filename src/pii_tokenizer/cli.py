"""CLI interface for pii-tokenizer.

Usage:
    # Tokenize text (stdin: plain text, stdout: tokenized text)
    echo 'Soy Juan Perez' | pii-tokenizer anonymize

    # Restore tokens (stdin: tokenized text, stdout: restored text)
    echo 'Hola NAME_5e0d4e2e1d0c' | pii-tokenizer deanonymize

    # Full model round trip (needs OPENAI_API_KEY), prints JSON
    echo 'Soy Juan Perez' | pii-tokenizer process

    # Dump store mappings / run the HTTP server
    pii-tokenizer dump
    pii-tokenizer serve --port 3001

Mappings persist in SQLite so tokens survive across calls.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

from .config import DEFAULT_DB, create_pipeline, load_config, load_from_yaml
from .pipeline import TokenPipeline
from .server import DEFAULT_HOST, serve


def _load(args: argparse.Namespace) -> dict:
    cfg = load_from_yaml(args.config) if args.config else load_config()
    if args.db:
        cfg["store_path"] = args.db
    if args.memory:
        cfg["store_backend"] = "memory"
    return cfg


def _build_pipeline(args: argparse.Namespace, *, require_model: bool = False) -> TokenPipeline:
    return create_pipeline(_load(args), require_model=require_model)


def cmd_anonymize(args: argparse.Namespace) -> None:
    """Tokenize PII in text from stdin."""
    pipeline = _build_pipeline(args)
    sys.stdout.write(pipeline.anonymize_only(sys.stdin.read()))
    pipeline.anonymizer.store.close()


def cmd_deanonymize(args: argparse.Namespace) -> None:
    """Restore tokens in text from stdin."""
    pipeline = _build_pipeline(args)
    sys.stdout.write(pipeline.deanonymize_only(sys.stdin.read()))
    pipeline.deanonymizer.store.close()


def cmd_process(args: argparse.Namespace) -> None:
    """Anonymize stdin, send it to the model, restore the reply."""
    pipeline = _build_pipeline(args, require_model=True)
    result = pipeline.process_with_model(sys.stdin.read())
    json.dump(result.to_dict(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    pipeline.anonymizer.store.close()


def cmd_dump(args: argparse.Namespace) -> None:
    """Dump store mappings as JSON."""
    pipeline = _build_pipeline(args)
    store = pipeline.anonymizer.store
    json.dump(store.dump(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    store.close()


def cmd_serve(args: argparse.Namespace) -> None:
    cfg = _load(args)
    port = args.port if args.port is not None else cfg["port"]
    pipeline = create_pipeline(cfg)
    try:
        serve(pipeline, host=args.host, port=port)
    finally:
        pipeline.anonymizer.store.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pii-tokenizer",
        description="Reversible PII tokenization for LLM calls",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--db", help=f"SQLite store path (default {DEFAULT_DB})")
    parser.add_argument("--memory", action="store_true", help="Use a throwaway in-memory store")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("anonymize", help="Tokenize text (stdin)")
    sub.add_parser("deanonymize", help="Restore tokens (stdin)")
    sub.add_parser("process", help="Round trip stdin through the model")
    sub.add_parser("dump", help="Dump store mappings")
    serve_parser = sub.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=DEFAULT_HOST)
    serve_parser.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "anonymize": cmd_anonymize,
        "deanonymize": cmd_deanonymize,
        "process": cmd_process,
        "dump": cmd_dump,
        "serve": cmd_serve,
    }
    cmds[args.command](args)


if __name__ == "__main__":
    main()
