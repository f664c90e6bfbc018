"""HTTP transport for pii-tokenizer.

A threaded stdlib HTTP server; each request runs on its own thread and
shares only the pipeline (and through it, the token store).

Endpoints:
    POST /anonymize        — {"message": ...}            → {"anonymizedMessage": ...}
    POST /deanonymize      — {"anonymizedMessage": ...}  → {"message": ...}
    POST /process-with-ai  — {"message": ...}            → {"original", "anonymized",
                                                            "aiResponse", "deanonymized"}
    GET  /health           — Health check

All endpoints expect/return JSON.  A missing field is a 400 with no side
effects; any internal failure is a 500 carrying {"error", "details"}.
"""

from __future__ import annotations
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable

from .errors import ValidationError
from .pipeline import TokenPipeline

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001


def require_field(body: dict[str, Any], name: str, error: str) -> str:
    value = body.get(name)
    if not isinstance(value, str) or not value:
        raise ValidationError(error)
    return value


class TokenizerServer(ThreadingHTTPServer):
    """ThreadingHTTPServer carrying the pipeline its handlers use."""

    def __init__(self, address: tuple[str, int], pipeline: TokenPipeline) -> None:
        super().__init__(address, TokenizerHandler)
        self.pipeline = pipeline


class TokenizerHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the tokenization endpoints."""

    server: TokenizerServer

    def _read_json(self) -> dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError as e:
            raise ValidationError("Invalid Content-Length header") from e
        if length < 0:
            raise ValidationError("Invalid Content-Length header")
        try:
            body = self.rfile.read(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("Request body must be UTF-8") from e
        if not body:
            return {}
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON body: {e.msg}") from e
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def _anonymize(self, body: dict[str, Any]) -> dict[str, Any]:
        message = require_field(body, "message", "Message is required in the request body")
        return {"anonymizedMessage": self.server.pipeline.anonymize_only(message)}

    def _deanonymize(self, body: dict[str, Any]) -> dict[str, Any]:
        anonymized = require_field(
            body, "anonymizedMessage", "Anonymized message is required in the request body",
        )
        return {"message": self.server.pipeline.deanonymize_only(anonymized)}

    def _process_with_ai(self, body: dict[str, Any]) -> dict[str, Any]:
        message = require_field(body, "message", "Message is required in the request body")
        return self.server.pipeline.process_with_model(message).to_dict()

    _ROUTES: dict[str, tuple[Callable, str]] = {
        "/anonymize": (_anonymize, "Internal server error during anonymization"),
        "/deanonymize": (_deanonymize, "Internal server error during deanonymization"),
        "/process-with-ai": (_process_with_ai, "Internal server error during processing"),
    }

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok"})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        route = self._ROUTES.get(self.path)
        if route is None:
            self._respond(404, {"error": "not found"})
            return
        handler, failure = route

        try:
            result = handler(self, self._read_json())
        except ValidationError as e:
            self._respond(400, {"error": str(e)})
            return
        except Exception as e:
            logger.exception("%s failed", self.path)
            self._respond(500, {"error": failure, "details": str(e)})
            return
        self._respond(200, result)


def serve(pipeline: TokenPipeline, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Start the HTTP server and block until interrupted."""
    server = TokenizerServer((host, port), pipeline)
    logger.info("pii-tokenizer listening on http://%s:%d", host, server.server_port)
    logger.info("model: %s", "configured" if pipeline.model else "disabled")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
    finally:
        server.server_close()
