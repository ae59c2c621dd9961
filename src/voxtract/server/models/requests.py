"""Pydantic models dos bodies JSON da API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class VideoRequest(BaseModel):
    """Body com apenas a referencia do video.

    ``url`` e opcional no model para que a ausencia vire a resposta 400
    padrao da API, e nao um 422 de validacao.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = Field(default=None, description="URL do video no YouTube.")


class ExtractRequest(VideoRequest):
    """Body de POST /api/extract."""

    cleanup_temp: bool = Field(
        default=True,
        alias="cleanupTemp",
        description="Remove arquivos intermediarios ao final do job.",
    )
    job_id: str | None = Field(
        default=None,
        alias="jobId",
        description="ID do job; permite cancelar via /api/jobs/{jobId}/cancel.",
    )
