"""Testes da verificacao de engines externos."""

from __future__ import annotations

from unittest.mock import AsyncMock

from voxtract.config.pipeline import EngineSettings
from voxtract.engines.check import check_dependencies
from voxtract.engines.runner import CommandResult
from voxtract.exceptions import EngineNotFoundError


def _ok(stdout: str) -> CommandResult:
    return CommandResult(argv=("x",), returncode=0, stdout=stdout, stderr="")


async def test_all_engines_found() -> None:
    runner = AsyncMock()
    runner.run.side_effect = [
        _ok("ffmpeg version 6.1.1 Copyright (c) 2000-2023\nbuilt with gcc"),
        _ok("ffprobe version 6.1.1\n"),
        _ok("2024.08.06\n"),
    ]
    statuses = await check_dependencies(runner, EngineSettings(ytdlp_command=["yt-dlp"]))

    assert [s.name for s in statuses] == ["ffmpeg", "ffprobe", "yt-dlp"]
    assert all(s.installed for s in statuses)
    assert statuses[0].version == "ffmpeg version 6.1.1 Copyright (c) 2000-2023"
    assert statuses[2].version == "2024.08.06"
    assert runner.run.await_args_list[2].args[0] == ["yt-dlp", "--version"]


async def test_missing_binary_and_nonzero_exit() -> None:
    runner = AsyncMock()
    runner.run.side_effect = [
        EngineNotFoundError("ffmpeg"),
        CommandResult(argv=("x",), returncode=1, stdout="", stderr="boom"),
        _ok("2024.08.06"),
    ]
    statuses = await check_dependencies(runner, EngineSettings())

    assert [s.installed for s in statuses] == [False, False, True]
    assert statuses[0].version is None


async def test_uses_configured_binaries() -> None:
    runner = AsyncMock()
    runner.run.return_value = _ok("v")
    settings = EngineSettings(
        ffmpeg_binary="/opt/ffmpeg/bin/ffmpeg",
        ffprobe_binary="/opt/ffmpeg/bin/ffprobe",
    )
    await check_dependencies(runner, settings)

    argvs = [call.args[0] for call in runner.run.await_args_list]
    assert argvs[0] == ["/opt/ffmpeg/bin/ffmpeg", "-version"]
    assert argvs[1] == ["/opt/ffmpeg/bin/ffprobe", "-version"]
