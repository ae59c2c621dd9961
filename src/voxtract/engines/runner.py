"""ProcessRunner — executa engines externos como subprocessos asyncio.

Responsabilidades:
- Limitar subprocessos simultaneos (semaphore compartilhado entre jobs)
- Capturar stdout/stderr para diagnostico
- Repassar linhas de stdout como progresso
- Terminar o processo em cancelamento ou timeout (SIGTERM, depois SIGKILL)
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from voxtract.exceptions import EngineNotFoundError, EngineTimeoutError, JobCancelledError
from voxtract.logging import get_logger
from voxtract.pipeline.metrics import engine_processes_active

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from voxtract.pipeline.cancel import CancellationToken

logger = get_logger("engines.runner")

# Constants
DEFAULT_MAX_CONCURRENT = 2
DEFAULT_TERMINATE_GRACE_S = 5.0
DIAGNOSTIC_TAIL_CHARS = 2000
# yt-dlp --dump-single-json emite um JSON de varias centenas de KB numa linha
_STREAM_LIMIT_BYTES = 16 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Resultado de uma invocacao de engine."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def diagnostic(self, limit: int = DIAGNOSTIC_TAIL_CHARS) -> str:
        """Ultimos ``limit`` caracteres da saida de erro (ou stdout se vazia)."""
        text = self.stderr.strip() or self.stdout.strip()
        return text[-limit:]


class ProcessRunner:
    """Executa subprocessos de engine com concorrencia limitada.

    Uma instancia e compartilhada por todos os jobs do processo, de modo
    que o limite vale para o host inteiro e nao por job.
    """

    def __init__(
        self,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        terminate_grace_s: float = DEFAULT_TERMINATE_GRACE_S,
    ) -> None:
        if max_concurrent < 1:
            msg = f"max_concurrent deve ser >= 1, recebido {max_concurrent}"
            raise ValueError(msg)
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._max_concurrent = max_concurrent
        self._terminate_grace_s = terminate_grace_s
        self._active = 0

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def active(self) -> int:
        """Subprocessos em execucao neste momento."""
        return self._active

    async def run(
        self,
        argv: Sequence[str],
        *,
        cancel_token: CancellationToken | None = None,
        timeout_s: float | None = None,
        on_line: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Executa um comando e aguarda sua conclusao.

        Args:
            argv: Comando e argumentos (sem shell).
            cancel_token: Token do job; cancelamento termina o processo.
            timeout_s: Tempo maximo de execucao (sem contar espera no semaphore).
            on_line: Callback chamado para cada linha de stdout.

        Returns:
            CommandResult com returncode e saidas capturadas.

        Raises:
            EngineNotFoundError: Binario nao encontrado.
            EngineTimeoutError: Processo excedeu ``timeout_s``.
            JobCancelledError: Token cancelado antes ou durante a execucao.
        """
        argv = tuple(argv)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        async with self._semaphore:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    limit=_STREAM_LIMIT_BYTES,
                )
            except FileNotFoundError:
                raise EngineNotFoundError(argv[0]) from None

            self._active += 1
            engine_processes_active.inc()
            logger.debug("engine_process_started", pid=process.pid, binary=argv[0])
            try:
                return await self._supervise(process, argv, cancel_token, timeout_s, on_line)
            finally:
                self._active -= 1
                engine_processes_active.dec()

    async def _supervise(
        self,
        process: asyncio.subprocess.Process,
        argv: tuple[str, ...],
        cancel_token: CancellationToken | None,
        timeout_s: float | None,
        on_line: Callable[[str], None] | None,
    ) -> CommandResult:
        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        readers = [
            asyncio.create_task(_drain(process.stdout, stdout_lines, on_line)),
            asyncio.create_task(_drain(process.stderr, stderr_lines, None)),
        ]
        wait_task = asyncio.create_task(process.wait())
        watchers: set[asyncio.Task[object]] = {wait_task}  # type: ignore[arg-type]
        cancel_task: asyncio.Task[None] | None = None
        if cancel_token is not None:
            cancel_task = asyncio.create_task(cancel_token.wait())
            watchers.add(cancel_task)  # type: ignore[arg-type]

        try:
            done, _ = await asyncio.wait(
                watchers, timeout=timeout_s, return_when=asyncio.FIRST_COMPLETED
            )
            if wait_task not in done:
                await self._terminate(process, argv[0])
                if cancel_task is not None and cancel_task in done:
                    raise JobCancelledError(cancel_token.job_id)  # type: ignore[union-attr]
                raise EngineTimeoutError(argv[0], timeout_s or 0.0)
            await asyncio.gather(*readers)
        except asyncio.CancelledError:
            # Task do caller cancelada: o subprocesso nao pode sobreviver a ela
            await self._terminate(process, argv[0])
            raise
        finally:
            for task in (*readers, wait_task, cancel_task):
                if task is not None and not task.done():
                    task.cancel()

        return CommandResult(
            argv=argv,
            returncode=process.returncode if process.returncode is not None else -1,
            stdout="\n".join(stdout_lines),
            stderr="\n".join(stderr_lines),
        )

    async def _terminate(self, process: asyncio.subprocess.Process, binary: str) -> None:
        """Termina o processo gracefully (SIGTERM, espera, SIGKILL se necessario)."""
        if process.returncode is not None:
            return
        logger.info("engine_process_terminating", pid=process.pid, binary=binary)
        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=self._terminate_grace_s)
        except TimeoutError:
            logger.warning("engine_process_force_kill", pid=process.pid, binary=binary)
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()


async def _drain(
    stream: asyncio.StreamReader | None,
    sink: list[str],
    on_line: Callable[[str], None] | None,
) -> None:
    """Le o stream linha a linha ate EOF."""
    if stream is None:
        return
    while True:
        raw = await stream.readline()
        if not raw:
            return
        line = raw.decode(errors="replace").rstrip("\r\n")
        sink.append(line)
        if on_line is not None and line:
            on_line(line)
