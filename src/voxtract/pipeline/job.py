"""Estado de um job de extracao e nomes de arquivo derivados dele."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from voxtract._types import JobStatus, StageResult

if TYPE_CHECKING:
    from pathlib import Path

    from voxtract._types import AudioMetadata, SourceMetadata, StageName


class MonotonicMillisClock:
    """Timestamps em milissegundos estritamente crescentes no processo.

    Dois jobs do mesmo video iniciados no mesmo milissegundo recebem
    timestamps distintos, entao seus nomes de arquivo nunca colidem.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            current = max(int(time.time() * 1000), self._last + 1)
            self._last = current
            return current


@dataclass(frozen=True, slots=True)
class JobPaths:
    """Convencao de nomes ``{sourceId}_{timestampMillis}_{suffix}.{ext}``."""

    base_name: str
    temp_dir: Path
    output_dir: Path

    def intermediate(self, suffix: str, ext: str = "wav") -> Path:
        """Arquivo intermediario, sempre no diretorio temporario."""
        return self.temp_dir / f"{self.base_name}_{suffix}.{ext}"

    def deliverable(self, suffix: str, ext: str) -> Path:
        """Arquivo final, sempre no diretorio de saida."""
        return self.output_dir / f"{self.base_name}_{suffix}.{ext}"


@dataclass(slots=True)
class JobState:
    """Estado mutavel de uma execucao do pipeline.

    Pertence a exatamente uma chamada de ``JobOrchestrator.run``; nunca e
    compartilhado entre jobs.
    """

    job_id: str
    source_id: str
    created_at_ms: int
    paths: JobPaths
    status: JobStatus = JobStatus.RUNNING
    stages: list[StageResult] = field(default_factory=list)
    outputs: dict[StageName, Path] = field(default_factory=dict)
    source_metadata: SourceMetadata | None = None
    audio_metadata: AudioMetadata | None = None

    @property
    def last_output(self) -> Path | None:
        """Output do ultimo stage bem sucedido (input do proximo)."""
        if not self.stages:
            return None
        return self.stages[-1].output_path

    @property
    def failed_stage(self) -> StageResult | None:
        for result in self.stages:
            if not result.success:
                return result
        return None

    def record(self, result: StageResult) -> None:
        """Anexa o resultado de um stage, preservando a cadeia de dependencias.

        Raises:
            ValueError: Stage anterior falhou, ou o input do stage nao e o
                output do stage anterior.
        """
        if self.status is not JobStatus.RUNNING:
            msg = f"Job '{self.job_id}' ja terminou ({self.status.value})"
            raise ValueError(msg)
        if self.failed_stage is not None:
            msg = f"Stage '{result.stage.value}' executado apos falha anterior"
            raise ValueError(msg)
        if self.stages and result.input_path != self.last_output:
            msg = (
                f"Stage '{result.stage.value}' recebeu {result.input_path}, "
                f"esperado {self.last_output}"
            )
            raise ValueError(msg)

        self.stages.append(result)
        if result.success and result.output_path is not None:
            self.outputs[result.stage] = result.output_path

    def finish(self, status: JobStatus) -> None:
        """Transiciona para um estado terminal."""
        if status is JobStatus.RUNNING:
            msg = "Estado terminal invalido: running"
            raise ValueError(msg)
        if self.status is not JobStatus.RUNNING:
            msg = f"Job '{self.job_id}' ja terminou ({self.status.value})"
            raise ValueError(msg)
        self.status = status
