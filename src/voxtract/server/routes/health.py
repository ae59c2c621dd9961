"""Descricao do servico, health check e metricas Prometheus."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

import voxtract
from voxtract.server.models.responses import HealthResponse

SERVICE_NAME = "YouTube Audio Extractor API"

router = APIRouter()


@router.get("/")
async def describe() -> dict[str, Any]:
    """Descricao dos endpoints disponiveis."""
    return {
        "service": SERVICE_NAME,
        "version": voxtract.__version__,
        "endpoints": {
            "health": "GET /api/health",
            "extract": "POST /api/extract - Full audio extraction and cleaning",
            "quickExtract": "POST /api/quick-extract - Quick audio download only",
            "videoInfo": "POST /api/video-info - Get video information",
            "cancel": "POST /api/jobs/{jobId}/cancel - Cancel a running extraction",
            "metrics": "GET /metrics - Prometheus metrics",
        },
        "documentation": {
            "extract": {
                "method": "POST",
                "url": "/api/extract",
                "body": {
                    "url": "YouTube video URL (required)",
                    "cleanupTemp": "boolean (optional, default: true)",
                    "jobId": "string (optional, enables cancellation)",
                },
            },
            "quickExtract": {
                "method": "POST",
                "url": "/api/quick-extract",
                "body": {"url": "YouTube video URL (required)"},
            },
            "videoInfo": {
                "method": "POST",
                "url": "/api/video-info",
                "body": {"url": "YouTube video URL (required)"},
            },
        },
    }


@router.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness do servico."""
    return HealthResponse(
        service=SERVICE_NAME,
        version=voxtract.__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/metrics")
async def metrics() -> Response:
    """Metricas no formato de exposicao do Prometheus."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
