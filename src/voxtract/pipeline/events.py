"""Publicacao de eventos de progresso dos jobs.

O orchestrator publica ``ProgressEvent`` para um listener (callable). Um
``ProgressStream`` e um listener que tambem e um async iterator, para
consumidores que preferem ``async for``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from voxtract._types import ProgressEvent, ProgressKind
from voxtract.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from voxtract._types import StageName

logger = get_logger("pipeline.events")

ProgressListener = Callable[[ProgressEvent], None]


class ProgressStream:
    """Listener baseado em ``asyncio.Queue``.

    A iteracao termina apos o evento ``JOB_FINISHED``.

    Exemplo::

        stream = ProgressStream()
        task = asyncio.create_task(orchestrator.run(url, ExtractOptions(listener=stream)))
        async for event in stream:
            print(event.stage, event.percent)
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    def __call__(self, event: ProgressEvent) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # Eventos de progresso intermediarios sao descartaveis; o final nao
            if event.kind is not ProgressKind.JOB_FINISHED:
                return
            self._queue.get_nowait()
            self._queue.put_nowait(event)
        if event.kind is ProgressKind.JOB_FINISHED:
            self._closed = True

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if event.kind is ProgressKind.JOB_FINISHED:
                return


class ProgressEmitter:
    """Envia eventos de um job ao listener.

    Exceptions do listener sao logadas e nao interrompem o pipeline.
    """

    def __init__(self, job_id: str, listener: ProgressListener | None) -> None:
        self._job_id = job_id
        self._listener = listener

    def emit(
        self,
        kind: ProgressKind,
        stage: StageName | None = None,
        percent: float | None = None,
        message: str = "",
    ) -> None:
        if self._listener is None:
            return
        event = ProgressEvent(
            job_id=self._job_id,
            kind=kind,
            stage=stage,
            percent=percent,
            message=message,
        )
        try:
            self._listener(event)
        except Exception:
            logger.exception("progress_listener_failed", job_id=self._job_id, kind=kind.value)

    def stage_progress(self, stage: StageName) -> Callable[[float | None, str], None]:
        """Callback de progresso de engine vinculado a um stage."""

        def on_progress(percent: float | None, message: str) -> None:
            self.emit(ProgressKind.STAGE_PROGRESS, stage, percent, message)

        return on_progress
