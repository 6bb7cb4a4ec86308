"""Tests for the ingest Lambda handler.

The ``lambda/`` directory uses a Python reserved word, so we import the
module via importlib and patch attributes directly on the loaded module.
"""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path
from types import ModuleType
from unittest.mock import MagicMock, patch

import pytest

from technodog.pipeline.ingest import IngestPipeline
from technodog.storage.memory_store import InMemoryStore

# ---------------------------------------------------------------------------
# Module loading helpers (``lambda`` is a reserved keyword)
# ---------------------------------------------------------------------------


def _load_ingest_handler() -> ModuleType:
    """Import lambda/ingest_handler.py via importlib."""
    repo_root = Path(__file__).resolve().parent.parent
    spec = importlib.util.spec_from_file_location(
        "ingest_handler", repo_root / "lambda" / "ingest_handler.py"
    )
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _event(body: dict | str | None, method: str = "POST") -> dict:
    """Build a minimal API Gateway event."""
    if isinstance(body, dict):
        body = json.dumps(body)
    return {"body": body, "httpMethod": method, "path": "/ingest"}


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def mod(store: InMemoryStore) -> ModuleType:
    module = _load_ingest_handler()
    module._pipeline = IngestPipeline(store=store)
    return module


# ---------------------------------------------------------------------------
# Ingest Handler Tests
# ---------------------------------------------------------------------------


class TestIngestHandler:
    def test_preflight(self, mod: ModuleType):
        result = mod.handler(_event(None, method="OPTIONS"), None)
        assert result["statusCode"] == 200
        assert result["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_ingests_documents(self, mod: ModuleType, store: InMemoryStore, long_text: str):
        result = mod.handler(_event({
            "documents": [
                {"title": "Short", "content": "Hard Wax, Berlin"},
                {"title": "Long", "content": long_text, "source": "archive"},
            ]
        }), None)

        assert result["statusCode"] == 200
        body = json.loads(result["body"])
        assert body["success"] is True
        assert body["ingested"] == 8
        assert body["errors"] == []
        assert body["results"][0]["title"] == "Short"
        assert body["results"][1] == {
            "title": "Long (1/7)", "chunk": 1, "id": body["results"][1]["id"],
        }
        assert store.count() == 8

    def test_partial_failure_reported(self, mod: ModuleType):
        result = mod.handler(_event({
            "documents": [{"title": "", "content": "x"}, {"title": "ok", "content": "y"}]
        }), None)

        assert result["statusCode"] == 200
        body = json.loads(result["body"])
        assert body["ingested"] == 1
        assert body["errors"][0].startswith("Document 0:")

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"documents": "not a list"},
            "not-valid-json{{{",
            "[1, 2]",
        ],
    )
    def test_bad_request(self, mod: ModuleType, body):
        result = mod.handler(_event(body), None)

        assert result["statusCode"] == 500
        assert "error" in json.loads(result["body"])

    def test_empty_documents(self, mod: ModuleType):
        result = mod.handler(_event({"documents": []}), None)
        body = json.loads(result["body"])
        assert result["statusCode"] == 200
        assert body["ingested"] == 0


# ---------------------------------------------------------------------------
# Pipeline construction
# ---------------------------------------------------------------------------


class TestPipelineConstruction:
    def _settings(self) -> MagicMock:
        settings = MagicMock()
        settings.storage.supabase_url = "https://project.supabase.co"
        settings.storage.supabase_key = "service-role"
        settings.storage.table = "documents"
        settings.chunking.chunk_size = 500
        settings.chunking.overlap = 50
        settings.embedding.enabled = False
        return settings

    def test_builds_from_settings(self):
        mod = _load_ingest_handler()
        with patch.object(mod, "load_settings", return_value=self._settings()):
            with patch.object(mod, "get_document_store") as mock_factory:
                pipeline = mod._get_pipeline()

        mock_factory.assert_called_once_with(
            "supabase",
            url="https://project.supabase.co",
            service_key="service-role",
            table="documents",
        )
        assert pipeline.chunk_size == 500
        assert pipeline.embedding_provider is None
        assert mod._get_pipeline() is pipeline  # warm-start reuse

    def test_memory_backend_setting_ignored(self):
        settings = self._settings()
        settings.storage.backend = "memory"

        mod = _load_ingest_handler()
        with patch.object(mod, "load_settings", return_value=settings):
            with patch.object(mod, "get_document_store") as mock_factory:
                mod._get_pipeline()

        assert mock_factory.call_args.args == ("supabase",)

    def test_unconfigured_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ):
        for var in ("TECHNODOG_PROFILE", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.chdir(tmp_path)

        mod = _load_ingest_handler()
        result = mod.handler(_event({"documents": [{"title": "t", "content": "x"}]}), None)

        assert result["statusCode"] == 500
        assert "Supabase" in json.loads(result["body"])["error"]

    def test_embeddings_need_key(self):
        settings = self._settings()
        settings.embedding.enabled = True
        settings.embedding.api_key = None

        mod = _load_ingest_handler()
        assert mod._get_embedding_provider(settings) is None
