"""Adapter ffmpeg/ffprobe para TranscodeEngine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from voxtract.engines.interface import TranscodeEngine, TranscodeRequest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from voxtract.engines.runner import CommandResult, ProcessRunner
    from voxtract.pipeline.cancel import CancellationToken


class FFmpegEngine(TranscodeEngine):
    """Executa ffmpeg para transcodificar e ffprobe para metadados.

    Progresso vem de ``-progress pipe:1`` (pares key=value no stdout).
    """

    def __init__(
        self,
        runner: ProcessRunner,
        ffmpeg_binary: str = "ffmpeg",
        ffprobe_binary: str = "ffprobe",
        timeout_s: float | None = None,
    ) -> None:
        self._runner = runner
        self._ffmpeg = ffmpeg_binary
        self._ffprobe = ffprobe_binary
        self._timeout_s = timeout_s

    @property
    def name(self) -> str:
        return "ffmpeg"

    async def transcode(
        self,
        request: TranscodeRequest,
        *,
        cancel_token: CancellationToken | None = None,
        on_progress: Callable[[float | None, str], None] | None = None,
    ) -> CommandResult:
        argv = build_transcode_argv(self._ffmpeg, request)
        on_line = None
        if on_progress is not None:
            on_line = _progress_line_handler(on_progress)
        return await self._runner.run(
            argv,
            cancel_token=cancel_token,
            timeout_s=self._timeout_s,
            on_line=on_line,
        )

    async def probe(
        self,
        path: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> CommandResult:
        return await self._runner.run(
            build_probe_argv(self._ffprobe, path),
            cancel_token=cancel_token,
            timeout_s=self._timeout_s,
        )


def build_transcode_argv(binary: str, request: TranscodeRequest) -> list[str]:
    """Constroi argv do ffmpeg para uma TranscodeRequest.

    Ordem: opcoes globais, input, filtros, codec, formato, progresso, output.
    """
    argv = [binary, "-hide_banner", "-nostdin", "-y", "-i", str(request.input_path)]
    if request.drop_video:
        argv.append("-vn")
    if request.filter_chain:
        argv.extend(["-af", request.filter_chain])
    argv.extend(["-acodec", request.codec])
    if request.bitrate:
        argv.extend(["-b:a", request.bitrate])
    if request.sample_rate is not None:
        argv.extend(["-ar", str(request.sample_rate)])
    if request.channels is not None:
        argv.extend(["-ac", str(request.channels)])
    argv.extend(["-progress", "pipe:1", "-nostats", str(request.output_path)])
    return argv


def build_probe_argv(binary: str, path: Path) -> list[str]:
    """Constroi argv do ffprobe com saida JSON de format + streams."""
    return [
        binary,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(path),
    ]


def _progress_line_handler(
    on_progress: Callable[[float | None, str], None],
) -> Callable[[str], None]:
    """Converte linhas ``out_time=...`` / ``progress=end`` em eventos de progresso."""

    def handle(line: str) -> None:
        key, sep, value = line.partition("=")
        if not sep:
            return
        if key == "out_time":
            on_progress(None, f"out_time={value}")
        elif key == "progress" and value == "end":
            on_progress(100.0, "done")

    return handle
