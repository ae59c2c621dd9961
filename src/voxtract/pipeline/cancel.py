"""Cancelamento de jobs em execucao.

Um ``CancellationToken`` acompanha todas as invocacoes de stage de um job.
Quando cancelado, o ProcessRunner termina o subprocesso em andamento
(SIGTERM, SIGKILL apos grace period) e levanta ``JobCancelledError``.

O ``CancellationManager`` e usado pela camada HTTP para localizar o token
de um job pelo ID. O orchestrator nao depende dele.
"""

from __future__ import annotations

import asyncio

from voxtract.exceptions import JobCancelledError
from voxtract.logging import get_logger

logger = get_logger("pipeline.cancel")


class CancellationToken:
    """Sinal de cancelamento de um job.

    Idempotente: cancelar duas vezes e no-op.
    """

    def __init__(self, job_id: str = "") -> None:
        self.job_id = job_id
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.info("job_cancel_requested", job_id=self.job_id)
        self._event.set()

    async def wait(self) -> None:
        """Bloqueia ate o token ser cancelado."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise JobCancelledError(self.job_id)


class CancellationManager:
    """Registro de tokens de jobs em execucao.

    Fluxo:
    1. ``register()`` antes de iniciar o job.
    2. ``cancel()`` a qualquer momento.
    3. ``unregister()`` apos o estado terminal.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, CancellationToken] = {}

    def register(self, job_id: str, token: CancellationToken | None = None) -> CancellationToken:
        """Registra (ou cria) o token de um job e o retorna."""
        if token is None:
            token = CancellationToken(job_id)
        token.job_id = job_id
        self._tokens[job_id] = token
        return token

    def cancel(self, job_id: str) -> bool:
        """Cancela job pelo ID.

        Returns:
            True se o job estava registrado, False caso contrario.
        """
        token = self._tokens.get(job_id)
        if token is None:
            return False
        token.cancel()
        return True

    def unregister(self, job_id: str) -> None:
        """Remove job do registro. No-op se ja removido."""
        self._tokens.pop(job_id, None)

    def is_registered(self, job_id: str) -> bool:
        return job_id in self._tokens

    @property
    def active_count(self) -> int:
        """Total de jobs registrados."""
        return len(self._tokens)

    def cancel_all(self) -> int:
        """Cancela todos os jobs registrados. Retorna quantos foram cancelados."""
        tokens = list(self._tokens.values())
        for token in tokens:
            token.cancel()
        return len(tokens)
