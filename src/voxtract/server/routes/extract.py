"""POST /api/extract, /api/quick-extract, /api/video-info e cancelamento de jobs."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from voxtract.logging import get_logger
from voxtract.pipeline.cancel import CancellationManager  # noqa: TC001
from voxtract.pipeline.orchestrator import ExtractOptions, JobOrchestrator
from voxtract.server.dependencies import get_cancellations, get_orchestrator
from voxtract.server.error_handlers import MISSING_URL_ERROR, error_response
from voxtract.server.models.requests import ExtractRequest, VideoRequest
from voxtract.server.models.responses import CancelResponse

logger = get_logger("server.extract")

router = APIRouter(prefix="/api")


@router.post("/extract")
async def extract_audio(
    body: ExtractRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),  # noqa: B008
    cancellations: CancellationManager = Depends(get_cancellations),  # noqa: B008
) -> Any:
    """Extracao completa: download, filtros, WAV + MP3.

    Falhas do pipeline retornam 400 com o resultado estruturado do job.
    """
    if not body.url:
        return error_response(400, MISSING_URL_ERROR)

    logger.info("extract_requested", url=body.url, cleanup_temp=body.cleanup_temp)
    options = ExtractOptions(cleanup_temp=body.cleanup_temp)
    return await _run_job(orchestrator, cancellations, body.url, body.job_id, options)


@router.post("/quick-extract")
async def quick_extract(
    body: VideoRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),  # noqa: B008
    cancellations: CancellationManager = Depends(get_cancellations),  # noqa: B008
) -> Any:
    """Apenas download do audio, sem processamento."""
    if not body.url:
        return error_response(400, MISSING_URL_ERROR)

    logger.info("quick_extract_requested", url=body.url)
    return await _run_job(orchestrator, cancellations, body.url, None, ExtractOptions(quick=True))


@router.post("/video-info")
async def video_info(
    body: VideoRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> Any:
    """Metadados do video sem download."""
    if not body.url:
        return error_response(400, MISSING_URL_ERROR)

    logger.info("video_info_requested", url=body.url)
    result = await orchestrator.get_video_info(body.url)
    if not result["success"]:
        return JSONResponse(status_code=400, content=result)
    return result


@router.post("/jobs/{job_id}/cancel", response_model=CancelResponse)
async def cancel_job(
    job_id: str,
    cancellations: CancellationManager = Depends(get_cancellations),  # noqa: B008
) -> CancelResponse:
    """Cancela um job em execucao.

    Idempotente: job inexistente ou ja finalizado retorna ``cancelled: false``.
    """
    cancelled = cancellations.cancel(job_id)
    return CancelResponse(job_id=job_id, cancelled=cancelled)


async def _run_job(
    orchestrator: JobOrchestrator,
    cancellations: CancellationManager,
    url: str,
    job_id: str | None,
    options: ExtractOptions,
) -> Any:
    job_id = job_id or str(uuid.uuid4())
    if cancellations.is_registered(job_id):
        return error_response(409, "Job already running", f"jobId '{job_id}' em uso")

    options.job_id = job_id
    options.cancel_token = cancellations.register(job_id)
    try:
        result = await orchestrator.run(url, options)
    finally:
        cancellations.unregister(job_id)

    payload = result.as_dict()
    if not result.success:
        return JSONResponse(status_code=400, content=payload)
    return payload
