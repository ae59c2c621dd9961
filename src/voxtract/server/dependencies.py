"""FastAPI dependencies para injecao do JobOrchestrator e dos tokens de cancelamento."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request  # noqa: TC002

if TYPE_CHECKING:
    from voxtract.pipeline.cancel import CancellationManager
    from voxtract.pipeline.orchestrator import JobOrchestrator


def get_orchestrator(request: Request) -> JobOrchestrator:
    """Retorna o JobOrchestrator do app state.

    Raises:
        RuntimeError: Se o orchestrator nao foi configurado em create_app().
    """
    orchestrator = request.app.state.orchestrator
    if orchestrator is None:
        raise RuntimeError("Orchestrator nao configurado. Passe orchestrator= em create_app().")
    return orchestrator  # type: ignore[no-any-return]


def get_cancellations(request: Request) -> CancellationManager:
    """Retorna o registro de jobs em execucao do app state."""
    return request.app.state.cancellations  # type: ignore[no-any-return]
