"""Adapter yt-dlp para DownloadEngine.

yt-dlp roda como subprocesso (``python -m yt_dlp`` por default) para que
cancelamento e limite de concorrencia valham igual aos do ffmpeg.
"""

from __future__ import annotations

import re
import sys
from typing import TYPE_CHECKING

from voxtract.engines.interface import DownloadEngine

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from voxtract.engines.runner import CommandResult, ProcessRunner
    from voxtract.pipeline.cancel import CancellationToken

# Opcoes comuns a todas as invocacoes
_COMMON_FLAGS = (
    "--no-check-certificates",
    "--no-warnings",
    "--prefer-free-formats",
    "--no-playlist",
)

_PROGRESS_RE = re.compile(r"^\[download\]\s+(\d+(?:\.\d+)?)%")


class YtDlpEngine(DownloadEngine):
    """Executa yt-dlp em modo dump de metadados ou download de audio."""

    def __init__(
        self,
        runner: ProcessRunner,
        command: Sequence[str] | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._runner = runner
        self._command = list(command) if command else [sys.executable, "-m", "yt_dlp"]
        self._timeout_s = timeout_s

    @property
    def name(self) -> str:
        return "yt-dlp"

    async def dump_metadata(
        self,
        reference: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> CommandResult:
        return await self._runner.run(
            build_metadata_argv(self._command, reference),
            cancel_token=cancel_token,
            timeout_s=self._timeout_s,
        )

    async def fetch_audio(
        self,
        reference: str,
        output_template: str,
        *,
        audio_format: str = "wav",
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> CommandResult:
        on_line = None
        if on_progress is not None:

            def on_line(line: str) -> None:
                percent = parse_progress(line)
                if percent is not None:
                    on_progress(percent, line)

        return await self._runner.run(
            build_fetch_argv(self._command, reference, output_template, audio_format),
            cancel_token=cancel_token,
            timeout_s=self._timeout_s,
            on_line=on_line,
        )


def build_metadata_argv(command: Sequence[str], reference: str) -> list[str]:
    """Argv do modo "dump metadata only": um documento JSON no stdout."""
    return [*command, "--dump-single-json", *_COMMON_FLAGS, "--", reference]


def build_fetch_argv(
    command: Sequence[str],
    reference: str,
    output_template: str,
    audio_format: str = "wav",
) -> list[str]:
    """Argv do modo "fetch best audio"."""
    return [
        *command,
        "--extract-audio",
        "--audio-format",
        audio_format,
        "--audio-quality",
        "0",
        "--format",
        "bestaudio/best",
        "--output",
        output_template,
        "--force-overwrites",
        "--newline",
        *_COMMON_FLAGS,
        "--",
        reference,
    ]


def parse_progress(line: str) -> float | None:
    """Extrai percentual de uma linha ``[download]  42.0% of ...``."""
    match = _PROGRESS_RE.match(line.strip())
    if match is None:
        return None
    return float(match.group(1))
