"""FastAPI application factory para o Voxtract."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

import voxtract
from voxtract.logging import get_logger
from voxtract.pipeline.cancel import CancellationManager
from voxtract.server.error_handlers import register_error_handlers
from voxtract.server.routes import extract, health

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import Request, Response

    from voxtract.pipeline.orchestrator import JobOrchestrator

logger = get_logger("server.app")


def create_app(
    orchestrator: JobOrchestrator | None = None,
    cancellations: CancellationManager | None = None,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Cria a aplicacao FastAPI.

    Args:
        orchestrator: JobOrchestrator (opcional, None apenas para testes de health).
        cancellations: Registro de jobs em execucao. Default: registro novo.
        cors_origins: Lista de CORS origins permitidos (opcional).

    Returns:
        FastAPI application configurada.
    """
    app = FastAPI(
        title="Voxtract",
        version=voxtract.__version__,
        description="Extracao de voz limpa a partir de videos do YouTube",
    )

    app.state.orchestrator = orchestrator
    app.state.cancellations = cancellations or CancellationManager()

    if cors_origins:
        from fastapi.middleware.cors import CORSMiddleware

        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        logger.info("http_request", method=request.method, path=request.url.path)
        return await call_next(request)

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(extract.router)

    return app
