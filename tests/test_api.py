"""
Tests for the HTTP API (tools router and health check).

Each test gets its own app instance whose pipeline is built from isolated
settings; tests that need generation swap in a pipeline with fake providers.
"""

import pytest
from fastapi.testclient import TestClient

from toolgen.ai.failover import FailoverExecutor
from toolgen.main import create_app
from toolgen.routers import tools
from toolgen.routers.tools import content_disposition
from toolgen.services.artifact_store import ArtifactStore
from toolgen.services.synthesis_pipeline import SynthesisPipeline
from toolgen.services.template_catalog import TemplateCatalog


@pytest.fixture
def client(output_dir, make_settings):
    app = create_app(make_settings(OUTPUT_DIR=str(output_dir)))
    with TestClient(app) as client:
        yield client


def install_providers(client, output_dir, *providers):
    pipeline = SynthesisPipeline(ArtifactStore(output_dir), TemplateCatalog(), FailoverExecutor(list(providers)))
    client.app.state.pipeline_holder.swap(pipeline)
    return pipeline


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_startup_with_every_vendor_configured(self, output_dir, make_settings):
        settings = make_settings(
            OUTPUT_DIR=str(output_dir),
            DOUBAO_API_KEY="ark-test",
            OPENAI_API_KEY="sk-test",
            ANTHROPIC_API_KEY="ak-test",
            GEMINI_API_KEY="g-test",
        )

        with TestClient(create_app(settings)) as client:
            failover = client.get("/api/providers").json()["failover"]

        assert failover["providers"] == ["Doubao", "OpenAI", "Anthropic", "Gemini"]


class TestGenerate:
    """Tests for POST /api/generate."""

    def test_template_request(self, client, output_dir):
        response = client.post("/api/generate", json={"request": "计算器"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["filename"].startswith("计算器_")
        assert data["filename"].endswith(".html")
        assert (output_dir / data["filename"]).is_file()
        assert "<!DOCTYPE" in data["htmlContent"]

    def test_generated_request(self, client, output_dir, make_provider, valid_html):
        install_providers(client, output_dir, make_provider("A"))

        response = client.post("/api/generate", json={"request": "pomodoro timer"})

        assert response.status_code == 200
        assert response.json()["htmlContent"] == valid_html

    def test_blank_request(self, client):
        response = client.post("/api/generate", json={"request": "   "})
        assert response.status_code == 400

    def test_missing_field(self, client):
        response = client.post("/api/generate", json={})
        assert response.status_code == 422

    def test_generation_unavailable(self, client):
        response = client.post("/api/generate", json={"request": "pomodoro timer"})

        assert response.status_code == 503
        assert "not configured" in response.json()["detail"]

    def test_all_providers_failed(self, client, output_dir, failing_provider):
        install_providers(
            client,
            output_dir,
            failing_provider("A", "401 unauthorized"),
            failing_provider("B", "503 service unavailable"),
        )

        response = client.post("/api/generate", json={"request": "pomodoro timer"})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["error"] == "all_providers_failed"
        assert [a["provider"] for a in detail["attempts"]] == ["A", "B"]

    def test_unwritable_output(self, client, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        pipeline = SynthesisPipeline(ArtifactStore(blocker), TemplateCatalog())
        client.app.state.pipeline_holder.swap(pipeline)

        response = client.post("/api/generate", json={"request": "计算器"})

        assert response.status_code == 500


class TestFiles:
    """Tests for GET /api/files and GET /api/download."""

    def test_files_empty(self, client):
        response = client.get("/api/files")
        assert response.status_code == 200
        assert response.json() == []

    def test_files_after_generate(self, client):
        filename = client.post("/api/generate", json={"request": "表格"}).json()["filename"]
        assert client.get("/api/files").json() == [filename]

    def test_download(self, client, output_dir, valid_html):
        (output_dir / "calc_20250101_000000.html").write_text(valid_html, encoding="utf-8")

        response = client.get("/api/download", params={"file": "calc_20250101_000000"})

        assert response.status_code == 200
        assert response.text == valid_html
        assert response.headers["content-type"].startswith("text/html")
        assert 'filename="calc_20250101_000000.html"' in response.headers["content-disposition"]

    def test_download_missing(self, client):
        response = client.get("/api/download", params={"file": "nothing.html"})
        assert response.status_code == 404

    def test_download_traversal(self, client):
        response = client.get("/api/download", params={"file": "../secret.html"})
        assert response.status_code == 404

    def test_download_requires_file(self, client):
        response = client.get("/api/download")
        assert response.status_code == 422

    def test_content_disposition_non_ascii(self):
        header = content_disposition("计算器_20250101_000000.html")

        assert header.startswith("attachment; ")
        assert 'filename="____20250101_000000.html"' in header
        assert "filename*=UTF-8''%E8%AE%A1%E7%AE%97%E5%99%A8_20250101_000000.html" in header


class TestProviders:
    """Tests for /api/providers, /api/providers/diagnose and /api/reload."""

    def test_providers_without_ai(self, client, output_dir):
        data = client.get("/api/providers").json()

        assert data["use_ai"] is True
        assert data["generation_available"] is False
        assert data["output_dir"] == str(output_dir)
        assert data["failover"] is None

    def test_providers_with_failover(self, client, output_dir, make_provider, failing_provider):
        install_providers(client, output_dir, failing_provider("A"), make_provider("B"))
        client.post("/api/generate", json={"request": "pomodoro timer"})

        failover = client.get("/api/providers").json()["failover"]

        assert failover["providers"] == ["A", "B"]
        assert failover["preferred_provider"] == "B"

    def test_diagnose_without_providers(self, client):
        assert client.post("/api/providers/diagnose").status_code == 503

    def test_diagnose(self, client, output_dir, make_provider, failing_provider):
        install_providers(client, output_dir, make_provider("A", content="ok"), failing_provider("B", "429 quota"))

        data = client.post("/api/providers/diagnose").json()
        results = data["results"]

        assert data["overall_status"] == "1/2 providers usable"
        assert [r["success"] for r in results] == [True, False]
        assert results[1]["status"] == "authentication_failed"
        assert results[1]["failure_kind"] == "rate_limit"
        assert [c["stage"] for c in results[1]["checks"]] == ["config", "authentication"]

    def test_reload(self, client, tmp_path, monkeypatch, make_settings):
        new_dir = tmp_path / "reloaded"
        monkeypatch.setattr(tools, "get_settings", lambda: make_settings(OUTPUT_DIR=str(new_dir)))

        response = client.post("/api/reload")

        assert response.status_code == 200
        assert response.json()["output_dir"] == str(new_dir)
        assert client.get("/api/providers").json()["output_dir"] == str(new_dir)
