"""JobOrchestrator — executa o pipeline de extracao de ponta a ponta.

Pipeline completo (cada stage consome apenas o output do anterior):

    download -> extract -> noise_reduction -> vocal_enhancement
             [-> silence_removal] -> mp3_conversion

O modo quick executa apenas o download, direto para o diretorio de saida.

Regras:
- A primeira falha interrompe o pipeline; o resultado carrega todos os
  StageResult ja produzidos e o stage que falhou.
- Intermediarios sao removidos apos o estado terminal (sucesso, falha ou
  cancelamento) quando ``cleanup_temp`` esta ativo. Deliverables nunca.
- Nao ha retry implicito.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from voxtract._types import (
    FilterPurpose,
    JobResult,
    JobStatus,
    ProcessResult,
    ProgressKind,
    StageName,
    StageResult,
)
from voxtract.engines.ffmpeg import FFmpegEngine
from voxtract.engines.runner import ProcessRunner
from voxtract.engines.ytdlp import YtDlpEngine
from voxtract.exceptions import (
    DownloadError,
    InvalidInputError,
    JobCancelledError,
    MetadataError,
    ProcessingError,
)
from voxtract.filters.graph import build
from voxtract.logging import job_logger
from voxtract.pipeline.cancel import CancellationToken
from voxtract.pipeline.downloader import Downloader
from voxtract.pipeline.events import ProgressEmitter
from voxtract.pipeline.job import JobPaths, JobState, MonotonicMillisClock
from voxtract.pipeline.metrics import jobs_total, stage_duration_seconds
from voxtract.pipeline.processor import AudioProcessor, CodecParams
from voxtract.pipeline.temp_files import TempFileManager

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    import structlog

    from voxtract.config.pipeline import PipelineConfig
    from voxtract.pipeline.events import ProgressListener

INVALID_REFERENCE_ERROR = "Invalid YouTube URL"
CANCELLED_ERROR = "Job cancelled"
UNEXPECTED_ERROR = "Unexpected error during audio extraction"
QUICK_DOWNLOAD_ERROR = "Failed to download audio"
VIDEO_INFO_ERROR = "Failed to retrieve video information"
FULL_SUCCESS_MESSAGE = "Audio extracted and cleaned successfully"
QUICK_SUCCESS_MESSAGE = "Audio downloaded successfully"

# Resumo de falha por stage, exposto em JobResult.error
STAGE_FAILURE_MESSAGES: dict[StageName, str] = {
    StageName.DOWNLOAD: "Failed to download audio from YouTube",
    StageName.EXTRACT: "Failed to extract raw audio",
    StageName.NOISE_REDUCTION: "Failed to apply noise reduction",
    StageName.VOCAL_ENHANCEMENT: "Failed to enhance vocals",
    StageName.SILENCE_REMOVAL: "Failed to remove silence",
    StageName.MP3_CONVERSION: "Failed to convert to MP3",
}

DESCRIPTION_PREVIEW_CHARS = 500

# Sufixos de arquivo por stage
RAW_SUFFIX = "raw"
EXTRACTED_SUFFIX = "filtered"
DENOISED_SUFFIX = "enhanced"
VOCALS_SUFFIX = "vocals"
CLEAN_VOICE_SUFFIX = "clean_voice"
QUICK_SUFFIX = "audio"


@dataclass(slots=True)
class ExtractOptions:
    """Opcoes de uma execucao do pipeline."""

    cleanup_temp: bool = True
    quick: bool = False
    job_id: str | None = None
    cancel_token: CancellationToken | None = None
    listener: ProgressListener | None = None


@dataclass(slots=True)
class _JobContext:
    """Colaboradores de uma unica execucao."""

    state: JobState
    temp_files: TempFileManager
    emitter: ProgressEmitter
    cancel_token: CancellationToken
    log: structlog.stdlib.BoundLogger


class JobOrchestrator:
    """Coordena Downloader, AudioProcessor e TempFileManager por job.

    Nao guarda estado de job: cada ``run`` cria seu proprio ``JobState``.
    Jobs concorrentes compartilham apenas o relogio monotonico (nomes de
    arquivo unicos) e o ProcessRunner dos engines.

    Args:
        config: Configuracao do pipeline.
        downloader: Fachada do download engine.
        processor: Fachada do engine de transcodificacao.
        clock: Fonte de timestamps em milissegundos para nomes de arquivo.

    Raises:
        InvalidInputError: Parametros de filtro da configuracao invalidos.
    """

    def __init__(
        self,
        config: PipelineConfig,
        downloader: Downloader,
        processor: AudioProcessor,
        clock: MonotonicMillisClock | None = None,
    ) -> None:
        self._config = config
        self._downloader = downloader
        self._processor = processor
        self._clock = clock or MonotonicMillisClock()

        # Filter graphs sao puros: construidos uma vez, erros de config falham aqui
        self._noise_spec = build(FilterPurpose.NOISE_REDUCTION, config.noise_reduction)
        self._vocal_spec = build(FilterPurpose.VOCAL_ENHANCEMENT, config.vocal_enhancement)
        self._silence_spec = build(FilterPurpose.SILENCE_REMOVAL, config.silence_removal)
        self._mp3_params = CodecParams(codec="libmp3lame", bitrate=config.audio.mp3_bitrate)

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        runner: ProcessRunner | None = None,
    ) -> JobOrchestrator:
        """Monta o orchestrator com os engines reais (ffmpeg e yt-dlp)."""
        engines = config.engines
        if runner is None:
            runner = ProcessRunner(
                max_concurrent=engines.max_concurrent_processes,
                terminate_grace_s=engines.terminate_grace_s,
            )
        ffmpeg = FFmpegEngine(
            runner,
            ffmpeg_binary=engines.ffmpeg_binary,
            ffprobe_binary=engines.ffprobe_binary,
            timeout_s=engines.stage_timeout_s,
        )
        ytdlp = YtDlpEngine(
            runner,
            command=engines.ytdlp_command,
            timeout_s=engines.stage_timeout_s,
        )
        return cls(config, Downloader(ytdlp), AudioProcessor(ffmpeg, config.audio))

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def extract(self, reference: str, *, cleanup_temp: bool = True) -> JobResult:
        """Extracao completa com limpeza."""
        return await self.run(reference, ExtractOptions(cleanup_temp=cleanup_temp))

    async def quick_extract(self, reference: str) -> JobResult:
        """Apenas download, sem filtros."""
        return await self.run(reference, ExtractOptions(quick=True))

    async def run(self, reference: str, options: ExtractOptions | None = None) -> JobResult:
        """Executa um job e devolve o resultado agregado.

        Nunca levanta excecao por falha de stage, cancelamento ou erro
        inesperado: tudo vira ``JobResult`` com ``success=False``.
        """
        options = options or ExtractOptions()
        job_id = options.job_id or str(uuid.uuid4())
        cancel_token = options.cancel_token or CancellationToken(job_id)
        if not cancel_token.job_id:
            cancel_token.job_id = job_id
        emitter = ProgressEmitter(job_id, options.listener)
        log = job_logger("pipeline.orchestrator", job_id)

        if not self._downloader.is_valid_reference(reference):
            log.warning("invalid_reference", reference=str(reference))
            result = JobResult(
                success=False,
                job_id=job_id,
                status=JobStatus.FAILED,
                error=INVALID_REFERENCE_ERROR,
                details=f"Referencia nao reconhecida: '{reference}'",
            )
            return self._finalize(result, emitter, log)

        source_id = self._downloader.extract_source_id(reference) or "unknown"
        created_at_ms = self._clock.now_ms()
        state = JobState(
            job_id=job_id,
            source_id=source_id,
            created_at_ms=created_at_ms,
            paths=JobPaths(
                base_name=f"{source_id}_{created_at_ms}",
                temp_dir=self._config.temp_dir,
                output_dir=self._config.output_dir,
            ),
        )
        log = log.bind(source_id=source_id)
        ctx = _JobContext(
            state=state,
            temp_files=TempFileManager(job_id),
            emitter=emitter,
            cancel_token=cancel_token,
            log=log,
        )
        log.info("job_started", reference=reference, quick=options.quick)

        error: str | None = None
        details: str | None = None
        try:
            self._config.output_dir.mkdir(parents=True, exist_ok=True)
            if options.quick:
                ok = await self._run_quick(reference, ctx)
            else:
                self._config.temp_dir.mkdir(parents=True, exist_ok=True)
                ok = await self._run_full(reference, ctx)
            if ok:
                state.finish(JobStatus.SUCCEEDED)
            else:
                state.finish(JobStatus.FAILED)
        except JobCancelledError as exc:
            log.info("job_cancelled")
            state.finish(JobStatus.CANCELLED)
            error, details = CANCELLED_ERROR, str(exc)
        except Exception as exc:
            log.exception("job_unexpected_error")
            if state.status is JobStatus.RUNNING:
                state.finish(JobStatus.FAILED)
            error, details = UNEXPECTED_ERROR, str(exc)
        finally:
            if options.cleanup_temp:
                ctx.temp_files.cleanup()

        result = self._build_result(state, options.quick, error, details)
        return self._finalize(result, emitter, log)

    async def get_video_info(self, reference: str) -> dict[str, Any]:
        """Metadados do video sem download, no formato da API.

        Descricao truncada em 500 caracteres seguidos de ``...``.
        """
        try:
            metadata = await self._downloader.fetch_metadata(reference)
        except InvalidInputError as exc:
            return {"success": False, "error": INVALID_REFERENCE_ERROR, "details": exc.detail}
        except DownloadError as exc:
            return {"success": False, "error": VIDEO_INFO_ERROR, "details": exc.reason}

        info = metadata.as_dict()
        description = metadata.description
        if description is not None:
            info["description"] = description[:DESCRIPTION_PREVIEW_CHARS] + "..."
        return {"success": True, "info": info}

    async def _run_full(self, reference: str, ctx: _JobContext) -> bool:
        paths = ctx.state.paths
        processor = self._processor
        token = ctx.cancel_token

        raw = ctx.temp_files.track(paths.intermediate(RAW_SUFFIX))
        if not await self._stage(
            ctx, StageName.DOWNLOAD, None, raw, lambda p: self._download(reference, raw, ctx, p)
        ):
            return False

        extracted = ctx.temp_files.track(paths.intermediate(EXTRACTED_SUFFIX))
        if not await self._stage(
            ctx,
            StageName.EXTRACT,
            raw,
            extracted,
            lambda p: processor.extract_raw(
                raw,
                extracted,
                processor.audio.sample_rate,
                processor.audio.channels,
                cancel_token=token,
                on_progress=p,
            ),
        ):
            return False

        denoised = ctx.temp_files.track(paths.intermediate(DENOISED_SUFFIX))
        if not await self._stage(
            ctx,
            StageName.NOISE_REDUCTION,
            extracted,
            denoised,
            lambda p: processor.apply_filter_graph(
                extracted, denoised, self._noise_spec, cancel_token=token, on_progress=p
            ),
        ):
            return False

        clean_wav = paths.deliverable(CLEAN_VOICE_SUFFIX, "wav")
        if self._config.remove_silence:
            enhanced = ctx.temp_files.track(paths.intermediate(VOCALS_SUFFIX))
        else:
            enhanced = clean_wav
        if not await self._stage(
            ctx,
            StageName.VOCAL_ENHANCEMENT,
            denoised,
            enhanced,
            lambda p: processor.apply_filter_graph(
                denoised, enhanced, self._vocal_spec, cancel_token=token, on_progress=p
            ),
        ):
            return False

        if self._config.remove_silence:
            if not await self._stage(
                ctx,
                StageName.SILENCE_REMOVAL,
                enhanced,
                clean_wav,
                lambda p: processor.remove_silence(
                    enhanced, clean_wav, self._silence_spec, cancel_token=token, on_progress=p
                ),
            ):
                return False

        mp3 = paths.deliverable(CLEAN_VOICE_SUFFIX, "mp3")
        if not await self._stage(
            ctx,
            StageName.MP3_CONVERSION,
            clean_wav,
            mp3,
            lambda p: processor.convert_format(
                clean_wav, mp3, "mp3", self._mp3_params, cancel_token=token, on_progress=p
            ),
        ):
            return False

        try:
            ctx.state.audio_metadata = await processor.probe_metadata(
                clean_wav, cancel_token=token
            )
        except MetadataError as exc:
            ctx.log.warning("audio_metadata_unavailable", path=str(clean_wav), reason=exc.reason)
        return True

    async def _run_quick(self, reference: str, ctx: _JobContext) -> bool:
        output = ctx.state.paths.deliverable(QUICK_SUFFIX, "wav")
        return await self._stage(
            ctx,
            StageName.DOWNLOAD,
            None,
            output,
            lambda p: self._download(reference, output, ctx, p),
        )

    async def _download(
        self,
        reference: str,
        dest: Path,
        ctx: _JobContext,
        on_progress: Callable[[float | None, str], None],
    ) -> ProcessResult:
        outcome = await self._downloader.fetch_audio(
            reference, dest, cancel_token=ctx.cancel_token, on_progress=on_progress
        )
        if outcome.metadata is not None:
            ctx.state.source_metadata = outcome.metadata
        return ProcessResult(
            success=outcome.success,
            output_path=outcome.file_path,
            error=outcome.error,
            diagnostic=outcome.diagnostic,
        )

    async def _stage(
        self,
        ctx: _JobContext,
        stage: StageName,
        input_path: Path | None,
        output_path: Path,
        action: Callable[[Callable[[float | None, str], None]], Awaitable[ProcessResult]],
    ) -> bool:
        """Executa um stage, registra o StageResult e publica eventos.

        Returns:
            True se o stage teve sucesso.

        Raises:
            JobCancelledError: Job cancelado durante o stage (ja registrado
                como stage com falha).
        """
        ctx.emitter.emit(ProgressKind.STAGE_STARTED, stage)
        ctx.log.info("stage_started", stage=stage.value, output=str(output_path))
        start = time.monotonic()
        try:
            outcome = await action(ctx.emitter.stage_progress(stage))
        except JobCancelledError as exc:
            cancelled = ProcessResult(success=False, error=str(exc))
            self._record(ctx, stage, input_path, output_path, start, cancelled)
            raise

        self._record(ctx, stage, input_path, output_path, start, outcome)
        return outcome.success

    def _record(
        self,
        ctx: _JobContext,
        stage: StageName,
        input_path: Path | None,
        output_path: Path,
        start: float,
        outcome: ProcessResult,
    ) -> None:
        elapsed = time.monotonic() - start
        stage_duration_seconds.labels(stage=stage.value).observe(elapsed)
        result = StageResult(
            stage=stage,
            success=outcome.success,
            input_path=input_path,
            output_path=output_path if outcome.success else None,
            error=outcome.error,
            diagnostic=outcome.diagnostic,
            duration_s=elapsed,
        )
        ctx.state.record(result)

        if outcome.success:
            ctx.emitter.emit(ProgressKind.STAGE_COMPLETED, stage, 100.0)
            ctx.log.info("stage_completed", stage=stage.value, duration_s=round(elapsed, 3))
        else:
            ctx.emitter.emit(ProgressKind.STAGE_FAILED, stage, message=outcome.error or "")
            ctx.log.warning(
                "stage_failed",
                stage=stage.value,
                error=outcome.error,
                duration_s=round(elapsed, 3),
            )

    def _build_result(
        self,
        state: JobState,
        quick: bool,
        error: str | None,
        details: str | None,
    ) -> JobResult:
        stages = tuple(state.stages)
        failed = state.failed_stage

        if state.status is JobStatus.SUCCEEDED:
            if quick:
                output_files = {"wav": _path_str(state.outputs.get(StageName.DOWNLOAD))}
                message = QUICK_SUCCESS_MESSAGE
            else:
                final_wav_stage = (
                    StageName.SILENCE_REMOVAL
                    if StageName.SILENCE_REMOVAL in state.outputs
                    else StageName.VOCAL_ENHANCEMENT
                )
                output_files = {
                    "wav": _path_str(state.outputs.get(final_wav_stage)),
                    "mp3": _path_str(state.outputs.get(StageName.MP3_CONVERSION)),
                }
                message = FULL_SUCCESS_MESSAGE
            return JobResult(
                success=True,
                job_id=state.job_id,
                status=state.status,
                source_id=state.source_id,
                metadata=state.source_metadata,
                audio_metadata=state.audio_metadata,
                output_files=output_files,
                stages=stages,
                message=message,
            )

        if error is None and failed is not None:
            if quick and failed.stage is StageName.DOWNLOAD:
                error = QUICK_DOWNLOAD_ERROR
            else:
                error = STAGE_FAILURE_MESSAGES[failed.stage]
            details = failed.error
            if failed.stage is not StageName.DOWNLOAD:
                details = _processing_details(
                    ProcessingError(failed.stage.value, failed.error or "", failed.diagnostic)
                )
        return JobResult(
            success=False,
            job_id=state.job_id,
            status=state.status,
            source_id=state.source_id,
            metadata=state.source_metadata,
            stages=stages,
            error=error or UNEXPECTED_ERROR,
            details=details,
            failed_stage=None if failed is None else failed.stage,
        )

    def _finalize(
        self,
        result: JobResult,
        emitter: ProgressEmitter,
        log: structlog.stdlib.BoundLogger,
    ) -> JobResult:
        jobs_total.labels(status=result.status.value).inc()
        emitter.emit(
            ProgressKind.JOB_FINISHED,
            percent=100.0 if result.success else None,
            message=result.message or result.error or "",
        )
        if result.success:
            log.info("job_finished", status=result.status.value)
        else:
            log.warning(
                "job_finished",
                status=result.status.value,
                error=result.error,
                stage=None if result.failed_stage is None else result.failed_stage.value,
            )
        return result


def _path_str(path: Path | None) -> str | None:
    return None if path is None else str(path)


def _processing_details(exc: ProcessingError) -> str:
    """Stage, motivo e cauda do diagnostico do engine."""
    if not exc.diagnostic:
        return str(exc)
    return f"{exc}\n{exc.diagnostic}"
