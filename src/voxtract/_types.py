"""Tipos fundamentais do Voxtract.

Este modulo define enums e dataclasses compartilhados por todos os
componentes do pipeline. Todos os resultados sao imutaveis: um stage
produz um resultado e nunca o altera depois.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class StageName(Enum):
    """Stages do pipeline, na ordem em que podem executar."""

    DOWNLOAD = "download"
    EXTRACT = "extract"
    NOISE_REDUCTION = "noise_reduction"
    VOCAL_ENHANCEMENT = "vocal_enhancement"
    SILENCE_REMOVAL = "silence_removal"
    MP3_CONVERSION = "mp3_conversion"


class FilterPurpose(Enum):
    """Proposito de um filter graph.

    Cada proposito tem ordenacao canonica propria (ver voxtract.filters.graph).
    """

    NOISE_REDUCTION = "noise-reduction"
    VOCAL_ENHANCEMENT = "vocal-enhancement"
    SILENCE_REMOVAL = "silence-removal"


class JobStatus(Enum):
    """Estado de um job.

    Transicoes validas:
        RUNNING -> SUCCEEDED
        RUNNING -> FAILED
        RUNNING -> CANCELLED
    """

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ProgressKind(Enum):
    """Tipo de evento de progresso emitido pelo orchestrator."""

    STAGE_STARTED = "stage_started"
    STAGE_PROGRESS = "stage_progress"
    STAGE_COMPLETED = "stage_completed"
    STAGE_FAILED = "stage_failed"
    JOB_FINISHED = "job_finished"


@dataclass(frozen=True, slots=True)
class FilterOperation:
    """Operacao individual de um filter graph (ex: highpass f=80)."""

    name: str
    params: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Sequencia ordenada de operacoes aplicadas numa unica invocacao do engine."""

    purpose: FilterPurpose
    operations: tuple[FilterOperation, ...]

    @property
    def names(self) -> tuple[str, ...]:
        """Nomes das operacoes, na ordem."""
        return tuple(op.name for op in self.operations)


@dataclass(frozen=True, slots=True)
class AudioMetadata:
    """Metadados de um arquivo de audio, sempre obtidos via probe."""

    duration: float | None
    sample_rate: int | None
    channels: int | None
    codec: str | None
    bit_rate: int | None

    def as_dict(self) -> dict[str, Any]:
        return {
            "duration": self.duration,
            "bitRate": self.bit_rate,
            "sampleRate": self.sample_rate,
            "channels": self.channels,
            "codec": self.codec,
        }


@dataclass(frozen=True, slots=True)
class SourceMetadata:
    """Metadados do video de origem reportados pelo download engine."""

    source_id: str | None
    title: str | None
    duration: float | None
    uploader: str | None
    upload_date: str | None
    view_count: int | None = None
    description: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.source_id,
            "title": self.title,
            "duration": self.duration,
            "uploader": self.uploader,
            "uploadDate": self.upload_date,
            "viewCount": self.view_count,
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class DownloadOutcome:
    """Resultado de um download. Falhas nunca viram exception."""

    success: bool
    file_path: Path | None = None
    metadata: SourceMetadata | None = None
    error: str | None = None
    diagnostic: str = ""


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Resultado uniforme de uma invocacao do engine de transcodificacao."""

    success: bool
    output_path: Path | None = None
    error: str | None = None
    diagnostic: str = ""


@dataclass(frozen=True, slots=True)
class StageResult:
    """Resultado de um stage do pipeline.

    ``input_path`` e o unico input declarado do stage; para todo stage
    i > 0 ele e igual ao ``output_path`` do stage i-1.
    """

    stage: StageName
    success: bool
    input_path: Path | None = None
    output_path: Path | None = None
    error: str | None = None
    diagnostic: str = ""
    duration_s: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "success": self.success,
            "inputPath": None if self.input_path is None else str(self.input_path),
            "outputPath": None if self.output_path is None else str(self.output_path),
            "error": self.error,
            "diagnostic": self.diagnostic,
            "durationSeconds": round(self.duration_s, 3),
        }


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Evento de progresso de um job."""

    job_id: str
    kind: ProgressKind
    stage: StageName | None = None
    percent: float | None = None
    message: str = ""


@dataclass(frozen=True, slots=True)
class JobResult:
    """Resultado agregado de um job, pronto para serializacao JSON."""

    success: bool
    job_id: str
    status: JobStatus
    source_id: str | None = None
    metadata: SourceMetadata | None = None
    audio_metadata: AudioMetadata | None = None
    output_files: dict[str, str | None] = field(default_factory=dict)
    stages: tuple[StageResult, ...] = ()
    error: str | None = None
    details: str | None = None
    failed_stage: StageName | None = None
    message: str | None = None

    def as_dict(self) -> dict[str, Any]:
        stages = [s.as_dict() for s in self.stages]
        if not self.success:
            return {
                "success": False,
                "status": self.status.value,
                "error": self.error,
                "details": self.details,
                "jobId": self.job_id,
                "sourceId": self.source_id,
                "videoId": self.source_id,
                "stage": None if self.failed_stage is None else self.failed_stage.value,
                "stages": stages,
            }
        return {
            "success": True,
            "status": self.status.value,
            "jobId": self.job_id,
            "sourceId": self.source_id,
            # alias legado de sourceId
            "videoId": self.source_id,
            "metadata": None if self.metadata is None else self.metadata.as_dict(),
            "audioMetadata": (
                None if self.audio_metadata is None else self.audio_metadata.as_dict()
            ),
            "outputFiles": dict(self.output_files),
            "message": self.message,
            "stages": stages,
        }
