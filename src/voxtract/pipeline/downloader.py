"""Downloader — valida referencias, faz probe de metadados e baixa audio.

Separar probe de metadados do download permite falhar barato (video
indisponivel, privado, restrito) antes de pagar o custo do download, e
permite que ``/api/video-info`` reuse o probe sem rodar o pipeline.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from voxtract._types import DownloadOutcome, SourceMetadata
from voxtract.exceptions import DownloadError, EngineError, InvalidInputError
from voxtract.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from voxtract.engines.interface import DownloadEngine
    from voxtract.pipeline.cancel import CancellationToken

logger = get_logger("pipeline.downloader")

# Formas aceitas: pagina canonica (watch?v=ID, watch?...&v=ID) e short link (youtu.be/ID)
_REFERENCE_PATTERNS = (
    re.compile(r"^(https?://)?(www\.)?(youtube\.com/watch\?v=|youtu\.be/)[\w-]+", re.ASCII),
    re.compile(r"^(https?://)?(www\.)?youtube\.com/watch\?.*v=[\w-]+", re.ASCII),
)

_SOURCE_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?(?:[^#]*&)?v=|youtu\.be/)([\w-]+)", re.ASCII),
    re.compile(r"youtube\.com/embed/([\w-]+)", re.ASCII),
)


def is_valid_reference(reference: object) -> bool:
    """True sse a referencia casa com uma das formas aceitas."""
    if not isinstance(reference, str):
        return False
    return any(pattern.search(reference) for pattern in _REFERENCE_PATTERNS)


def extract_source_id(reference: str) -> str | None:
    """Extrai o ID do video da referencia, ou None."""
    for pattern in _SOURCE_ID_PATTERNS:
        match = pattern.search(reference)
        if match and match.group(1):
            return match.group(1)
    return None


class Downloader:
    """Fachada do pipeline sobre o DownloadEngine."""

    def __init__(self, engine: DownloadEngine, audio_format: str = "wav") -> None:
        self._engine = engine
        self._audio_format = audio_format

    def is_valid_reference(self, reference: object) -> bool:
        return is_valid_reference(reference)

    def extract_source_id(self, reference: str) -> str | None:
        return extract_source_id(reference)

    async def fetch_metadata(
        self,
        reference: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> SourceMetadata:
        """Faz probe de metadados sem baixar o payload.

        Raises:
            InvalidInputError: Referencia em formato nao aceito.
            DownloadError: Engine falhou ou retornou documento invalido.
            JobCancelledError: Token cancelado.
        """
        if not self.is_valid_reference(reference):
            raise InvalidInputError(f"Referencia de video invalida: '{reference}'")

        try:
            result = await self._engine.dump_metadata(reference, cancel_token=cancel_token)
        except EngineError as exc:
            raise DownloadError(reference, str(exc)) from exc

        if not result.success:
            diagnostic = result.diagnostic()
            raise DownloadError(reference, _summarize_failure(diagnostic), diagnostic)

        try:
            info = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise DownloadError(
                reference, f"Documento de metadados invalido: {exc}", result.diagnostic()
            ) from exc
        if not isinstance(info, dict):
            raise DownloadError(reference, "Documento de metadados nao e um objeto JSON")

        return _metadata_from_info(info)

    async def fetch_audio(
        self,
        reference: str,
        dest_path: Path,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> DownloadOutcome:
        """Baixa o melhor audio disponivel em ``dest_path``.

        Nunca levanta excecao de falha: todo erro vira ``success=False``.
        Apenas ``JobCancelledError`` propaga. Arquivos parciais sao removidos.
        """
        try:
            metadata = await self.fetch_metadata(reference, cancel_token=cancel_token)
        except InvalidInputError as exc:
            return DownloadOutcome(success=False, error=str(exc))
        except DownloadError as exc:
            logger.warning("metadata_probe_failed", reference=reference, reason=exc.reason)
            return DownloadOutcome(success=False, error=exc.reason, diagnostic=exc.diagnostic)

        logger.info(
            "download_starting",
            reference=reference,
            title=metadata.title,
            duration=metadata.duration,
        )

        dest_path.parent.mkdir(parents=True, exist_ok=True)
        # yt-dlp substitui %(ext)s pela extensao final apos o post-processing
        template = str(dest_path.with_suffix(".%(ext)s"))

        try:
            result = await self._engine.fetch_audio(
                reference,
                template,
                audio_format=self._audio_format,
                cancel_token=cancel_token,
                on_progress=on_progress,
            )
        except EngineError as exc:
            _discard_partials(dest_path)
            return DownloadOutcome(success=False, metadata=metadata, error=str(exc))
        except BaseException:
            _discard_partials(dest_path)
            raise

        if not result.success:
            _discard_partials(dest_path)
            diagnostic = result.diagnostic()
            logger.warning(
                "download_failed",
                reference=reference,
                returncode=result.returncode,
            )
            return DownloadOutcome(
                success=False,
                metadata=metadata,
                error=_summarize_failure(diagnostic),
                diagnostic=diagnostic,
            )

        if not dest_path.exists():
            _discard_partials(dest_path)
            return DownloadOutcome(
                success=False,
                metadata=metadata,
                error=f"{self._engine.name} reportou sucesso mas nao gerou {dest_path.name}",
                diagnostic=result.diagnostic(),
            )

        logger.info("download_complete", reference=reference, path=str(dest_path))
        return DownloadOutcome(
            success=True,
            file_path=dest_path,
            metadata=metadata,
            diagnostic=result.diagnostic(),
        )


def _metadata_from_info(info: dict[str, Any]) -> SourceMetadata:
    duration = info.get("duration")
    view_count = info.get("view_count")
    return SourceMetadata(
        source_id=_str_or_none(info.get("id")),
        title=_str_or_none(info.get("title")),
        duration=float(duration) if isinstance(duration, (int, float)) else None,
        uploader=_str_or_none(info.get("uploader")),
        upload_date=_str_or_none(info.get("upload_date")),
        view_count=view_count if isinstance(view_count, int) else None,
        description=_str_or_none(info.get("description")),
    )


def _str_or_none(value: object) -> str | None:
    return None if value is None else str(value)


def _summarize_failure(diagnostic: str) -> str:
    """Ultima linha ``ERROR:`` do engine, ou a ultima linha nao vazia."""
    lines = [line.strip() for line in diagnostic.splitlines() if line.strip()]
    for line in reversed(lines):
        if line.startswith("ERROR:"):
            return line
    if lines:
        return lines[-1]
    return "Download engine falhou sem diagnostico"


def _discard_partials(dest_path: Path) -> None:
    """Remove arquivos parciais de um download (``<stem>.*``)."""
    if not dest_path.parent.exists():
        return
    for partial in dest_path.parent.glob(f"{dest_path.stem}.*"):
        try:
            partial.unlink()
            logger.debug("partial_download_removed", path=str(partial))
        except OSError as exc:
            logger.warning("partial_download_not_removed", path=str(partial), error=str(exc))
