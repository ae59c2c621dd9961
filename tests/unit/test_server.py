"""Testes do API Server (app factory, rotas e error handlers)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

import voxtract
from tests.fakes import VIDEO_ID, VIDEO_URL, FakeDownloadEngine, FakeTranscodeEngine, make_orchestrator
from voxtract.pipeline.cancel import CancellationManager
from voxtract.server.app import create_app

if TYPE_CHECKING:
    from fastapi import FastAPI

    from voxtract.config.pipeline import PipelineConfig
    from voxtract.pipeline.orchestrator import JobOrchestrator


def _client(app: FastAPI, raise_app_exceptions: bool = True) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions),
        base_url="http://test",
    )


@pytest.fixture
def app(orchestrator: JobOrchestrator) -> FastAPI:
    return create_app(orchestrator=orchestrator)


class TestAppFactory:
    def test_create_app(self) -> None:
        app = create_app()
        assert app.title == "Voxtract"
        assert app.state.orchestrator is None
        assert isinstance(app.state.cancellations, CancellationManager)

    def test_shared_cancellation_manager(self) -> None:
        manager = CancellationManager()
        assert create_app(cancellations=manager).state.cancellations is manager


class TestHealth:
    async def test_health(self) -> None:
        async with _client(create_app()) as client:
            response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "healthy"
        assert body["service"] == "YouTube Audio Extractor API"
        assert body["version"] == voxtract.__version__
        assert body["timestamp"]

    async def test_root_describes_endpoints(self) -> None:
        async with _client(create_app()) as client:
            response = await client.get("/")

        body = response.json()
        assert response.status_code == 200
        assert "extract" in body["endpoints"]
        assert body["documentation"]["extract"]["url"] == "/api/extract"

    async def test_unknown_endpoint(self) -> None:
        async with _client(create_app()) as client:
            response = await client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Endpoint not found",
            "requestedPath": "/api/nope",
        }

    async def test_metrics(self, app: FastAPI) -> None:
        async with _client(app) as client:
            await client.post("/api/extract", json={"url": VIDEO_URL})
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert "voxtract_jobs_total" in response.text
        assert "voxtract_stage_duration_seconds" in response.text

    async def test_cors_headers(self) -> None:
        app = create_app(cors_origins=["*"])
        async with _client(app) as client:
            response = await client.get("/api/health", headers={"Origin": "http://example.com"})
        assert "access-control-allow-origin" in response.headers


class TestExtract:
    async def test_success(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/extract", json={"url": VIDEO_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Audio extracted and cleaned successfully"
        assert body["outputFiles"]["wav"].endswith("_clean_voice.wav")
        assert body["outputFiles"]["mp3"].endswith("_clean_voice.mp3")
        assert body["metadata"]["title"] == "Never Gonna Give You Up"
        assert body["audioMetadata"]["sampleRate"] == 44100
        assert body["sourceId"] == VIDEO_ID
        assert body["videoId"] == VIDEO_ID
        assert len(body["stages"]) == 5

    async def test_missing_url(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/extract", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing required parameter: url"}

    async def test_malformed_body(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/extract", json=["not", "an", "object"])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    async def test_invalid_url(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/extract", json={"url": "not-a-url"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid YouTube URL"

    async def test_stage_failure(self, pipeline_config: PipelineConfig) -> None:
        orchestrator = make_orchestrator(
            pipeline_config, transcode=FakeTranscodeEngine(fail_on=("_enhanced.wav",))
        )
        async with _client(create_app(orchestrator=orchestrator)) as client:
            response = await client.post("/api/extract", json={"url": VIDEO_URL})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Failed to apply noise reduction"
        assert body["stage"] == "noise_reduction"
        assert body["sourceId"] == VIDEO_ID
        assert body["details"]

    async def test_keep_temp_and_job_id(
        self, app: FastAPI, pipeline_config: PipelineConfig
    ) -> None:
        async with _client(app) as client:
            response = await client.post(
                "/api/extract",
                json={"url": VIDEO_URL, "cleanupTemp": False, "jobId": "job-42"},
            )

        assert response.json()["jobId"] == "job-42"
        assert len(list(pipeline_config.temp_dir.iterdir())) == 3
        assert app.state.cancellations.active_count == 0

    async def test_duplicate_job_id(self, app: FastAPI) -> None:
        app.state.cancellations.register("job-busy")
        async with _client(app) as client:
            response = await client.post(
                "/api/extract", json={"url": VIDEO_URL, "jobId": "job-busy"}
            )

        assert response.status_code == 409
        assert response.json()["error"] == "Job already running"

    async def test_without_orchestrator_returns_500(self) -> None:
        async with _client(create_app(), raise_app_exceptions=False) as client:
            response = await client.post("/api/extract", json={"url": VIDEO_URL})

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"


class TestQuickExtract:
    async def test_success(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/quick-extract", json={"url": VIDEO_URL})

        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "Audio downloaded successfully"
        assert body["outputFiles"]["wav"].endswith("_audio.wav")

    async def test_download_failure(self, pipeline_config: PipelineConfig) -> None:
        orchestrator = make_orchestrator(
            pipeline_config, download=FakeDownloadEngine(fetch_fails=True)
        )
        async with _client(create_app(orchestrator=orchestrator)) as client:
            response = await client.post("/api/quick-extract", json={"url": VIDEO_URL})

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to download audio"

    async def test_missing_url(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/quick-extract", json={})
        assert response.status_code == 400


class TestVideoInfo:
    async def test_success(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/video-info", json={"url": VIDEO_URL})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["info"]["duration"] == 212
        assert body["info"]["description"].endswith("...")
        assert len(body["info"]["description"]) == 503

    async def test_failure(self, pipeline_config: PipelineConfig) -> None:
        orchestrator = make_orchestrator(
            pipeline_config, download=FakeDownloadEngine(metadata_fails=True)
        )
        async with _client(create_app(orchestrator=orchestrator)) as client:
            response = await client.post("/api/video-info", json={"url": VIDEO_URL})

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to retrieve video information"

    async def test_missing_url(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/video-info", json={})
        assert response.status_code == 400


class TestCancelRoute:
    async def test_cancel_registered_job(self, app: FastAPI) -> None:
        token = app.state.cancellations.register("job-1")
        async with _client(app) as client:
            response = await client.post("/api/jobs/job-1/cancel")

        assert response.status_code == 200
        assert response.json() == {"success": True, "jobId": "job-1", "cancelled": True}
        assert token.is_cancelled

    async def test_cancel_unknown_job_is_idempotent(self, app: FastAPI) -> None:
        async with _client(app) as client:
            response = await client.post("/api/jobs/ghost/cancel")

        assert response.status_code == 200
        assert response.json()["cancelled"] is False
