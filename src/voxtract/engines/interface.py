"""Interfaces dos engines externos.

O pipeline so conhece estas interfaces. Os adapters concretos
(ffmpeg, yt-dlp) ficam em modulos proprios, e os testes usam fakes
que nunca criam processos.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from voxtract.engines.runner import CommandResult
    from voxtract.pipeline.cancel import CancellationToken


@dataclass(frozen=True, slots=True)
class TranscodeRequest:
    """Uma invocacao do engine de transcodificacao: arquivo in -> arquivo out.

    Codec, sample rate e canais sao sempre explicitos; ``None`` mantem o
    valor do arquivo de entrada.
    """

    input_path: Path
    output_path: Path
    codec: str
    sample_rate: int | None = None
    channels: int | None = None
    filter_chain: str | None = None
    bitrate: str | None = None
    drop_video: bool = True


class TranscodeEngine(ABC):
    """Engine de decode/filtro/encode de audio (ex: ffmpeg)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Nome do engine para logs e diagnosticos."""
        ...

    @abstractmethod
    async def transcode(
        self,
        request: TranscodeRequest,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> CommandResult:
        """Executa uma transcodificacao.

        Raises:
            EngineError: Engine ausente ou timeout.
            JobCancelledError: Token cancelado durante a execucao.
        """
        ...

    @abstractmethod
    async def probe(
        self,
        path: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> CommandResult:
        """Retorna metadados de formato/streams em JSON no stdout."""
        ...


class DownloadEngine(ABC):
    """Engine que resolve uma referencia de video em metadados e/ou audio."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Nome do engine para logs e diagnosticos."""
        ...

    @abstractmethod
    async def dump_metadata(
        self,
        reference: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> CommandResult:
        """Retorna um documento JSON de metadados no stdout, sem baixar payload."""
        ...

    @abstractmethod
    async def fetch_audio(
        self,
        reference: str,
        output_template: str,
        *,
        audio_format: str = "wav",
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> CommandResult:
        """Baixa o melhor audio disponivel usando o template de saida."""
        ...
