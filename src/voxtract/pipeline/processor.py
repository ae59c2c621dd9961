"""AudioProcessor — uma invocacao do engine de transcodificacao por stage.

Toda operacao devolve ``ProcessResult``: falhas do engine nunca escapam
como exception, com excecao do cancelamento, que propaga.
"""

from __future__ import annotations

import contextlib
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from voxtract._types import AudioMetadata, FilterPurpose, ProcessResult
from voxtract.config.pipeline import AudioSettings
from voxtract.engines.interface import TranscodeRequest
from voxtract.exceptions import EngineError, MetadataError
from voxtract.filters.graph import serialize
from voxtract.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from voxtract._types import FilterSpec
    from voxtract.engines.interface import TranscodeEngine
    from voxtract.pipeline.cancel import CancellationToken

logger = get_logger("pipeline.processor")


@dataclass(frozen=True, slots=True)
class CodecParams:
    """Codec e bitrate de um formato de saida."""

    codec: str
    bitrate: str | None = None
    sample_rate: int | None = None
    channels: int | None = None


# Formatos de saida suportados por convert_format
FORMAT_CODECS: dict[str, CodecParams] = {
    "mp3": CodecParams(codec="libmp3lame", bitrate="192k"),
    "wav": CodecParams(codec="pcm_s16le"),
    "ogg": CodecParams(codec="libvorbis", bitrate="192k"),
}


class AudioProcessor:
    """Stages de transcodificacao sobre um TranscodeEngine.

    Args:
        engine: Engine de transcodificacao (ffmpeg em producao, fake em testes).
        audio: Formato PCM canonico entre stages.
    """

    def __init__(self, engine: TranscodeEngine, audio: AudioSettings | None = None) -> None:
        self._engine = engine
        self._audio = audio or AudioSettings()

    @property
    def audio(self) -> AudioSettings:
        return self._audio

    async def extract_raw(
        self,
        input_path: Path,
        output_path: Path,
        sample_rate: int | None = None,
        channels: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> ProcessResult:
        """Converte qualquer container de audio para PCM canonico."""
        request = TranscodeRequest(
            input_path=input_path,
            output_path=output_path,
            codec=self._audio.codec,
            sample_rate=sample_rate or self._audio.sample_rate,
            channels=channels or self._audio.channels,
        )
        return await self._execute("extract", request, cancel_token, on_progress)

    async def apply_filter_graph(
        self,
        input_path: Path,
        output_path: Path,
        spec: FilterSpec,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> ProcessResult:
        """Aplica um FilterSpec e re-codifica em PCM canonico."""
        if not spec.operations:
            return ProcessResult(success=False, error="Filter graph vazio")
        request = TranscodeRequest(
            input_path=input_path,
            output_path=output_path,
            codec=self._audio.codec,
            sample_rate=self._audio.sample_rate,
            channels=self._audio.channels,
            filter_chain=serialize(spec),
        )
        return await self._execute(spec.purpose.value, request, cancel_token, on_progress)

    async def remove_silence(
        self,
        input_path: Path,
        output_path: Path,
        spec: FilterSpec,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> ProcessResult:
        """Remove silencio no inicio e no fim (FilterSpec de silence-removal)."""
        if spec.purpose is not FilterPurpose.SILENCE_REMOVAL:
            return ProcessResult(
                success=False,
                error=f"FilterSpec de '{spec.purpose.value}' nao remove silencio",
            )
        return await self.apply_filter_graph(
            input_path,
            output_path,
            spec,
            cancel_token=cancel_token,
            on_progress=on_progress,
        )

    async def convert_format(
        self,
        input_path: Path,
        output_path: Path,
        target_format: str,
        codec_params: CodecParams | None = None,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> ProcessResult:
        """Codifica no formato de entrega (mp3, wav, ogg)."""
        fmt = target_format.lower().lstrip(".")
        params = codec_params or FORMAT_CODECS.get(fmt)
        if params is None:
            supported = ", ".join(sorted(FORMAT_CODECS))
            return ProcessResult(
                success=False,
                error=f"Formato '{target_format}' nao suportado. Formatos aceitos: {supported}",
            )
        request = TranscodeRequest(
            input_path=input_path,
            output_path=output_path,
            codec=params.codec,
            bitrate=params.bitrate,
            sample_rate=params.sample_rate,
            channels=params.channels,
        )
        return await self._execute(f"convert_{fmt}", request, cancel_token, on_progress)

    async def probe_metadata(
        self,
        path: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> AudioMetadata:
        """Le duracao, sample rate, canais, codec e bitrate do arquivo.

        Raises:
            MetadataError: Arquivo ausente, engine falhou ou saida ilegivel.
            JobCancelledError: Token cancelado.
        """
        if not path.exists():
            raise MetadataError(str(path), "Arquivo nao encontrado")
        try:
            result = await self._engine.probe(path, cancel_token=cancel_token)
        except EngineError as exc:
            raise MetadataError(str(path), str(exc)) from exc
        if not result.success:
            raise MetadataError(str(path), result.diagnostic(limit=500) or "probe falhou")

        try:
            info = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise MetadataError(str(path), f"JSON invalido: {exc}") from exc
        if not isinstance(info, dict):
            raise MetadataError(str(path), "Saida do probe nao e um objeto JSON")

        return _metadata_from_probe(info)

    async def _execute(
        self,
        operation: str,
        request: TranscodeRequest,
        cancel_token: CancellationToken | None,
        on_progress: Callable[[float | None, str], None] | None,
    ) -> ProcessResult:
        if not request.input_path.exists():
            return ProcessResult(
                success=False,
                error=f"Arquivo de entrada nao encontrado: {request.input_path}",
            )
        request.output_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(
            "transcode_start",
            operation=operation,
            input=str(request.input_path),
            output=str(request.output_path),
        )
        try:
            result = await self._engine.transcode(
                request, cancel_token=cancel_token, on_progress=on_progress
            )
        except EngineError as exc:
            _discard(request.output_path)
            return ProcessResult(success=False, error=str(exc))
        except BaseException:
            _discard(request.output_path)
            raise

        diagnostic = result.diagnostic()
        if not result.success:
            _discard(request.output_path)
            logger.warning(
                "transcode_failed",
                operation=operation,
                engine=self._engine.name,
                returncode=result.returncode,
            )
            return ProcessResult(
                success=False,
                error=f"{self._engine.name} terminou com codigo {result.returncode}",
                diagnostic=diagnostic,
            )

        if not request.output_path.exists():
            return ProcessResult(
                success=False,
                error=f"{self._engine.name} nao gerou {request.output_path.name}",
                diagnostic=diagnostic,
            )

        logger.debug("transcode_complete", operation=operation, output=str(request.output_path))
        return ProcessResult(success=True, output_path=request.output_path, diagnostic=diagnostic)


def _discard(path: Path) -> None:
    """Remove output parcial para que nao seja confundido com resultado valido."""
    with contextlib.suppress(FileNotFoundError):
        path.unlink()


def _metadata_from_probe(info: dict[str, Any]) -> AudioMetadata:
    fmt = info.get("format") or {}
    streams = info.get("streams") or []
    audio = next(
        (s for s in streams if isinstance(s, dict) and s.get("codec_type") == "audio"),
        {},
    )
    return AudioMetadata(
        duration=_to_float(fmt.get("duration")),
        sample_rate=_to_int(audio.get("sample_rate")),
        channels=_to_int(audio.get("channels")),
        codec=audio.get("codec_name"),
        bit_rate=_to_int(fmt.get("bit_rate") or audio.get("bit_rate")),
    )


def _to_float(value: object) -> float | None:
    # ffprobe serializa numeros como string no JSON
    if value is None:
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _to_int(value: object) -> int | None:
    number = _to_float(value)
    return None if number is None else int(number)
