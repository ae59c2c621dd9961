"""Modelos de resposta da API que nao derivam de JobResult."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Resposta de GET /api/health."""

    success: bool = True
    status: str = "healthy"
    service: str
    version: str
    timestamp: str


class CancelResponse(BaseModel):
    """Resposta de POST /api/jobs/{job_id}/cancel."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    job_id: str = Field(serialization_alias="jobId")
    cancelled: bool


class ErrorResponse(BaseModel):
    """Envelope de erro: ``{success: false, error, details?}``."""

    success: bool = False
    error: str
    details: str | None = None
