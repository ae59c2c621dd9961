"""TempFileManager — remocao best-effort dos intermediarios de um job."""

from __future__ import annotations

from typing import TYPE_CHECKING

from voxtract.exceptions import CleanupWarning
from voxtract.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = get_logger("pipeline.temp_files")


class TempFileManager:
    """Registra e remove arquivos intermediarios de um job.

    O orchestrator registra cada output intermediario *antes* do stage
    executar, de modo que um arquivo parcial deixado por um stage
    interrompido tambem e removido. Deliverables nunca sao registrados.
    """

    def __init__(self, job_id: str = "") -> None:
        self._job_id = job_id
        self._tracked: list[Path] = []
        self._cleaned = False

    @property
    def tracked(self) -> list[Path]:
        return list(self._tracked)

    def track(self, path: Path) -> Path:
        """Registra um intermediario e o retorna."""
        if path not in self._tracked:
            self._tracked.append(path)
        return path

    def cleanup(self, paths: Iterable[Path] | None = None) -> list[CleanupWarning]:
        """Remove os arquivos informados (default: todos os registrados).

        Nunca levanta excecao. Arquivo inexistente nao e problema; falhas de
        permissao/IO viram ``CleanupWarning``, logadas e devolvidas.
        Sem argumentos, executa uma unica vez por job.
        """
        if paths is None:
            if self._cleaned:
                return []
            self._cleaned = True
            targets = list(self._tracked)
        else:
            targets = list(paths)

        warnings: list[CleanupWarning] = []
        removed = 0
        for path in targets:
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                logger.debug("temp_file_already_absent", job_id=self._job_id, path=str(path))
            except OSError as exc:
                warning = CleanupWarning(str(path), exc.strerror or str(exc))
                warnings.append(warning)
                logger.warning(
                    "temp_file_cleanup_failed",
                    job_id=self._job_id,
                    path=str(path),
                    reason=warning.reason,
                )

        logger.info(
            "temp_files_cleaned",
            job_id=self._job_id,
            removed=removed,
            warnings=len(warnings),
        )
        return warnings
