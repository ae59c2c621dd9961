"""Verificacao dos engines externos instalados (ffmpeg, ffprobe, yt-dlp)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from voxtract.exceptions import EngineError
from voxtract.logging import get_logger

if TYPE_CHECKING:
    from voxtract.config.pipeline import EngineSettings
    from voxtract.engines.runner import ProcessRunner

logger = get_logger("engines.check")

_VERSION_TIMEOUT_S = 30.0

# Instrucoes exibidas quando um engine nao e encontrado
INSTALL_HINTS: dict[str, tuple[str, ...]] = {
    "ffmpeg": (
        "Ubuntu/Debian: sudo apt-get install ffmpeg",
        "macOS: brew install ffmpeg",
        "Windows: choco install ffmpeg",
    ),
    "ffprobe": ("Instalado junto com o ffmpeg",),
    "yt-dlp": ("pip install yt-dlp",),
}


@dataclass(frozen=True, slots=True)
class DependencyStatus:
    """Estado de um engine externo."""

    name: str
    installed: bool
    version: str | None = None
    critical: bool = True


async def check_dependencies(
    runner: ProcessRunner,
    engines: EngineSettings,
) -> list[DependencyStatus]:
    """Executa ``--version`` de cada engine e reporta o que foi encontrado."""
    commands = (
        ("ffmpeg", [engines.ffmpeg_binary, "-version"]),
        ("ffprobe", [engines.ffprobe_binary, "-version"]),
        ("yt-dlp", [*engines.ytdlp_command, "--version"]),
    )
    statuses: list[DependencyStatus] = []
    for name, argv in commands:
        statuses.append(await _check_one(runner, name, argv))
    return statuses


async def _check_one(runner: ProcessRunner, name: str, argv: list[str]) -> DependencyStatus:
    try:
        result = await runner.run(argv, timeout_s=_VERSION_TIMEOUT_S)
    except EngineError as exc:
        logger.warning("dependency_missing", dependency=name, reason=str(exc))
        return DependencyStatus(name=name, installed=False)

    if not result.success:
        logger.warning("dependency_missing", dependency=name, returncode=result.returncode)
        return DependencyStatus(name=name, installed=False)

    lines = result.stdout.strip().splitlines()
    version = lines[0] if lines else None
    logger.debug("dependency_found", dependency=name, version=version)
    return DependencyStatus(name=name, installed=True, version=version)
