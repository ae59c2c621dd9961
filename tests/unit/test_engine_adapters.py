"""Testes dos adapters ffmpeg/ffprobe e yt-dlp (argv e parsing de progresso)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

from voxtract.engines.ffmpeg import FFmpegEngine, build_probe_argv, build_transcode_argv
from voxtract.engines.interface import TranscodeRequest
from voxtract.engines.runner import CommandResult
from voxtract.engines.ytdlp import (
    YtDlpEngine,
    build_fetch_argv,
    build_metadata_argv,
    parse_progress,
)

URL = "https://youtu.be/dQw4w9WgXcQ"


def _runner() -> AsyncMock:
    runner = AsyncMock()
    runner.run.return_value = CommandResult(("x",), 0, "", "")
    return runner


class TestFFmpegArgv:
    def test_extract_request(self) -> None:
        request = TranscodeRequest(
            input_path=Path("in.webm"),
            output_path=Path("out.wav"),
            codec="pcm_s16le",
            sample_rate=44100,
            channels=1,
        )
        argv = build_transcode_argv("ffmpeg", request)
        assert argv == [
            "ffmpeg",
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i",
            "in.webm",
            "-vn",
            "-acodec",
            "pcm_s16le",
            "-ar",
            "44100",
            "-ac",
            "1",
            "-progress",
            "pipe:1",
            "-nostats",
            "out.wav",
        ]

    def test_filter_and_bitrate(self) -> None:
        request = TranscodeRequest(
            input_path=Path("in.wav"),
            output_path=Path("out.mp3"),
            codec="libmp3lame",
            bitrate="192k",
            filter_chain="highpass=f=80",
        )
        argv = build_transcode_argv("/usr/bin/ffmpeg", request)
        assert argv[argv.index("-af") + 1] == "highpass=f=80"
        assert argv[argv.index("-b:a") + 1] == "192k"
        assert "-ar" not in argv
        assert argv[-1] == "out.mp3"

    def test_probe_argv(self) -> None:
        assert build_probe_argv("ffprobe", Path("a.wav")) == [
            "ffprobe",
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            "a.wav",
        ]


class TestFFmpegEngine:
    async def test_transcode_forwards_progress(self) -> None:
        runner = _runner()
        engine = FFmpegEngine(runner, timeout_s=60.0)
        events: list[tuple[float | None, str]] = []
        request = TranscodeRequest(Path("in.wav"), Path("out.wav"), codec="pcm_s16le")

        await engine.transcode(request, on_progress=lambda p, m: events.append((p, m)))

        kwargs = runner.run.await_args.kwargs
        assert kwargs["timeout_s"] == 60.0
        on_line = kwargs["on_line"]
        on_line("out_time=00:00:01.000000")
        on_line("bitrate=1411.2kbits/s")
        on_line("progress=end")
        assert events == [(None, "out_time=00:00:01.000000"), (100.0, "done")]

    async def test_probe_uses_ffprobe_binary(self) -> None:
        runner = _runner()
        engine = FFmpegEngine(runner, ffprobe_binary="/opt/ffprobe")
        await engine.probe(Path("a.wav"))
        assert runner.run.await_args.args[0][0] == "/opt/ffprobe"


class TestYtDlpArgv:
    def test_metadata_argv(self) -> None:
        argv = build_metadata_argv(["yt-dlp"], URL)
        assert argv[:2] == ["yt-dlp", "--dump-single-json"]
        assert "--no-check-certificates" in argv
        assert "--prefer-free-formats" in argv
        assert argv[-2:] == ["--", URL]

    def test_fetch_argv(self) -> None:
        argv = build_fetch_argv(["yt-dlp"], URL, "/tmp/a.%(ext)s")
        assert "--extract-audio" in argv
        assert argv[argv.index("--audio-format") + 1] == "wav"
        assert argv[argv.index("--audio-quality") + 1] == "0"
        assert argv[argv.index("--format") + 1] == "bestaudio/best"
        assert argv[argv.index("--output") + 1] == "/tmp/a.%(ext)s"
        assert argv[-1] == URL

    def test_parse_progress(self) -> None:
        assert parse_progress("[download]  42.5% of 3.20MiB at 1.00MiB/s ETA 00:02") == 42.5
        assert parse_progress("[download] 100% of 3.20MiB") == 100.0
        assert parse_progress("[ExtractAudio] Destination: a.wav") is None


class TestYtDlpEngine:
    async def test_default_command_runs_module(self) -> None:
        runner = _runner()
        engine = YtDlpEngine(runner)
        await engine.dump_metadata(URL)
        argv = runner.run.await_args.args[0]
        assert argv[1:3] == ["-m", "yt_dlp"]

    async def test_fetch_reports_only_progress_lines(self) -> None:
        runner = _runner()
        engine = YtDlpEngine(runner, command=["yt-dlp"])
        events: list[float | None] = []
        await engine.fetch_audio(URL, "/tmp/a.%(ext)s", on_progress=lambda p, m: events.append(p))

        on_line = runner.run.await_args.kwargs["on_line"]
        on_line("[youtube] dQw4w9WgXcQ: Downloading webpage")
        on_line("[download]  10.0% of 3.20MiB")
        assert events == [10.0]
