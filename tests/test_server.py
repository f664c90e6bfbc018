"""Tests for the HTTP transport and config/CLI wiring."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import http.client
import io
import json
import threading

import pytest

from pii_tokenizer import (
    MemoryTokenStore, ModelCallError, StoreUnavailableError, TokenPipeline,
    create_pipeline, generate_token, load_config, load_from_yaml,
)
from pii_tokenizer.cli import main
from pii_tokenizer.server import TokenizerServer


class CountingStore(MemoryTokenStore):
    __slots__ = ("calls",)

    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def upsert(self, token, original_value):
        self.calls += 1
        super().upsert(token, original_value)

    def get(self, token):
        self.calls += 1
        return super().get(token)


class DownStore:
    def upsert(self, token, original_value):
        raise StoreUnavailableError("connection refused")

    def get(self, token):
        raise StoreUnavailableError("connection refused")


class ParrotModel:
    def complete(self, prompt, options=None):
        return prompt.split('"')[1]


class BrokenModel:
    def complete(self, prompt, options=None):
        raise ModelCallError("Failed to generate completion: upstream 503")


@pytest.fixture
def serve_pipeline():
    servers = []

    def start(pipeline):
        server = TokenizerServer(("127.0.0.1", 0), pipeline)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server.server_port

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def _request(port, method, path, body=None, raw=None):
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    payload = raw if raw is not None else (json.dumps(body) if body is not None else None)
    headers = {"Content-Type": "application/json"} if payload is not None else {}
    conn.request(method, path, body=payload, headers=headers)
    resp = conn.getresponse()
    data = json.loads(resp.read().decode("utf-8"))
    conn.close()
    return resp.status, data


# ── HTTP endpoints ───────────────────────────────────────────────────

def test_anonymize_endpoint(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore()))
    status, data = _request(port, "POST", "/anonymize", {"message": "Soy Ana Ruiz"})
    assert status == 200
    assert data == {"anonymizedMessage": generate_token("NAME", "Soy Ana Ruiz")}


def test_deanonymize_endpoint(serve_pipeline):
    store = MemoryTokenStore()
    token = generate_token("EMAIL", "a@b.co")
    store.upsert(token, "a@b.co")
    port = serve_pipeline(TokenPipeline.create(store))

    status, data = _request(port, "POST", "/deanonymize", {"anonymizedMessage": f"mail {token}"})
    assert status == 200
    assert data == {"message": "mail a@b.co"}


def test_missing_message_is_400_without_store_access(serve_pipeline):
    store = CountingStore()
    port = serve_pipeline(TokenPipeline.create(store))

    status, data = _request(port, "POST", "/anonymize", {})
    assert status == 400
    assert "error" in data
    assert store.calls == 0


@pytest.mark.parametrize("path,body", [
    ("/deanonymize", {"message": "wrong field"}),
    ("/process-with-ai", {"message": ""}),
    ("/anonymize", {"message": 42}),
])
def test_invalid_fields_are_400(serve_pipeline, path, body):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore(), model=ParrotModel()))
    status, _ = _request(port, "POST", path, body)
    assert status == 400


def test_invalid_json_is_400(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore()))
    status, data = _request(port, "POST", "/anonymize", raw="{not json")
    assert status == 400
    assert data["error"].startswith("Invalid JSON body")


def _raw_post(port, body: bytes, length: str):
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    conn.putrequest("POST", "/anonymize")
    conn.putheader("Content-Type", "application/json")
    conn.putheader("Content-Length", length)
    conn.endheaders()
    conn.send(body)
    resp = conn.getresponse()
    data = json.loads(resp.read().decode("utf-8"))
    conn.close()
    return resp.status, data


@pytest.mark.parametrize("length", ["abc", "-1"])
def test_bad_content_length_is_400(serve_pipeline, length):
    store = CountingStore()
    port = serve_pipeline(TokenPipeline.create(store))
    status, data = _raw_post(port, b"", length)
    assert status == 400
    assert data["error"] == "Invalid Content-Length header"
    assert store.calls == 0


def test_non_utf8_body_is_400(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore()))
    body = b'{"message": "\xff\xfe"}'
    status, data = _raw_post(port, body, str(len(body)))
    assert status == 400
    assert data["error"] == "Request body must be UTF-8"


def test_process_with_ai_endpoint(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore(), model=ParrotModel()))
    message = "Hola, soy Juan Perez, mi correo es juan@example.com"

    status, data = _request(port, "POST", "/process-with-ai", {"message": message})

    assert status == 200
    assert set(data) == {"original", "anonymized", "aiResponse", "deanonymized"}
    assert data["original"] == message
    assert data["aiResponse"] == data["anonymized"]
    assert data["deanonymized"] == message


def test_model_failure_is_500_with_details(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore(), model=BrokenModel()))
    status, data = _request(port, "POST", "/process-with-ai", {"message": "Soy Ana Ruiz"})
    assert status == 500
    assert data["error"] == "Internal server error during processing"
    assert "upstream 503" in data["details"]


def test_store_outage_is_500(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(DownStore()))
    status, data = _request(port, "POST", "/anonymize", {"message": "Soy Ana Ruiz"})
    assert status == 500
    assert data["details"] == "connection refused"


def test_health_and_unknown_paths(serve_pipeline):
    port = serve_pipeline(TokenPipeline.create(MemoryTokenStore()))
    assert _request(port, "GET", "/health") == (200, {"status": "ok"})
    assert _request(port, "GET", "/nope")[0] == 404
    assert _request(port, "POST", "/nope", {})[0] == 404


# ── Config ───────────────────────────────────────────────────────────

def test_load_config_nested_with_env_overrides():
    cfg = load_config(
        {"pii_tokenizer": {"store": {"backend": "memory"}, "model": {"max_tokens": 50}}},
        env={"OPENAI_API_KEY": "sk-test", "PII_TOKENIZER_PORT": "9000"},
    )
    assert cfg["store_backend"] == "memory"
    assert cfg["max_tokens"] == 50
    assert cfg["api_key"] == "sk-test"
    assert cfg["port"] == 9000


def test_load_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "pii_tokenizer:\n"
        "  store:\n"
        "    backend: sqlite\n"
        f"    path: {tmp_path / 'tokens.db'}\n"
        "  detectors:\n"
        "    - name: dni\n"
        "      pattern: '\\b\\d{8}[A-Z]\\b'\n"
    )
    cfg = load_from_yaml(path, env={})
    assert cfg["store_path"] == str(tmp_path / "tokens.db")
    assert cfg["api_key"] is None

    pipeline = create_pipeline(cfg)
    assert pipeline.model is None
    assert pipeline.anonymizer.registry.names == ["NAME", "EMAIL", "PHONE", "DNI"]
    assert pipeline.anonymize_only("DNI 12345678Z") == "DNI " + generate_token("DNI", "12345678Z")
    pipeline.anonymizer.store.close()


def test_unknown_backend_rejected():
    cfg = load_config({"store": {"backend": "mongo"}}, env={})
    with pytest.raises(ValueError):
        create_pipeline(cfg)


# ── CLI ──────────────────────────────────────────────────────────────

def test_cli_anonymize(monkeypatch, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(sys, "stdin", io.StringIO("Escribe a ana@x.co"))
    main(["--memory", "anonymize"])
    assert capsys.readouterr().out == "Escribe a " + generate_token("EMAIL", "ana@x.co")


def test_cli_round_trip_through_sqlite(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    db = str(tmp_path / "tokens.db")

    monkeypatch.setattr(sys, "stdin", io.StringIO("Soy Ana Ruiz"))
    main(["--db", db, "anonymize"])
    tokenized = capsys.readouterr().out

    monkeypatch.setattr(sys, "stdin", io.StringIO(tokenized))
    main(["--db", db, "deanonymize"])
    assert capsys.readouterr().out == "Soy Ana Ruiz"

    main(["--db", db, "dump"])
    assert json.loads(capsys.readouterr().out) == {tokenized: "Soy Ana Ruiz"}



def test_cli_serve_closes_store_on_exit(monkeypatch):
    class ClosingStore(MemoryTokenStore):
        __slots__ = ("closed",)

        def __init__(self) -> None:
            super().__init__()
            self.closed = False

        def close(self) -> None:
            self.closed = True

    store = ClosingStore()

    def crash(pipeline, host, port):
        raise RuntimeError("address in use")

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("pii_tokenizer.cli.create_pipeline", lambda cfg: TokenPipeline.create(store))
    monkeypatch.setattr("pii_tokenizer.cli.serve", crash)
    with pytest.raises(RuntimeError):
        main(["--memory", "serve", "--port", "0"])
    assert store.closed

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
