"""Testes do ProcessRunner com subprocessos reais do interpretador Python."""

from __future__ import annotations

import asyncio
import sys
import time

import pytest

from voxtract.engines.runner import CommandResult, ProcessRunner
from voxtract.exceptions import EngineNotFoundError, EngineTimeoutError, JobCancelledError
from voxtract.pipeline.cancel import CancellationToken


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestCommandResult:
    def test_success_follows_returncode(self) -> None:
        assert CommandResult(("x",), 0, "", "").success is True
        assert CommandResult(("x",), 1, "", "").success is False

    def test_diagnostic_prefers_stderr_tail(self) -> None:
        result = CommandResult(("x",), 1, "out", "a" * 10 + "tail")
        assert result.diagnostic(limit=4) == "tail"

    def test_diagnostic_falls_back_to_stdout(self) -> None:
        assert CommandResult(("x",), 1, "only stdout\n", "  ").diagnostic() == "only stdout"


class TestRun:
    async def test_captures_output(self) -> None:
        runner = ProcessRunner()
        result = await runner.run(_python("import sys; print('hi'); print('err', file=sys.stderr)"))
        assert result.success
        assert result.stdout == "hi"
        assert result.stderr == "err"
        assert result.argv[0] == sys.executable

    async def test_nonzero_exit_is_not_an_exception(self) -> None:
        runner = ProcessRunner()
        result = await runner.run(_python("import sys; sys.exit(3)"))
        assert result.returncode == 3
        assert not result.success

    async def test_on_line_receives_stdout_lines(self) -> None:
        lines: list[str] = []
        runner = ProcessRunner()
        await runner.run(_python("print('a'); print(''); print('b')"), on_line=lines.append)
        assert lines == ["a", "b"]

    async def test_missing_binary_raises(self) -> None:
        runner = ProcessRunner()
        with pytest.raises(EngineNotFoundError, match="definitely-not-installed"):
            await runner.run(["definitely-not-installed-binary-xyz"])

    async def test_active_returns_to_zero(self) -> None:
        runner = ProcessRunner()
        await runner.run(_python("pass"))
        assert runner.active == 0

    def test_invalid_max_concurrent(self) -> None:
        with pytest.raises(ValueError, match="max_concurrent"):
            ProcessRunner(max_concurrent=0)


class TestCancellationAndTimeout:
    async def test_pre_cancelled_token_does_not_spawn(self) -> None:
        token = CancellationToken("job-1")
        token.cancel()
        runner = ProcessRunner()
        with pytest.raises(JobCancelledError):
            await runner.run(["definitely-not-installed-binary-xyz"], cancel_token=token)

    async def test_cancel_terminates_running_process(self) -> None:
        token = CancellationToken("job-2")
        runner = ProcessRunner(terminate_grace_s=2.0)

        async def cancel_later() -> None:
            await asyncio.sleep(0.2)
            token.cancel()

        start = time.monotonic()
        canceller = asyncio.create_task(cancel_later())
        with pytest.raises(JobCancelledError) as exc_info:
            await runner.run(_python("import time; time.sleep(30)"), cancel_token=token)
        await canceller

        assert exc_info.value.job_id == "job-2"
        assert time.monotonic() - start < 10
        assert runner.active == 0

    async def test_timeout_kills_process(self) -> None:
        runner = ProcessRunner(terminate_grace_s=2.0)
        start = time.monotonic()
        with pytest.raises(EngineTimeoutError):
            await runner.run(_python("import time; time.sleep(30)"), timeout_s=0.3)
        assert time.monotonic() - start < 10

    async def test_concurrency_is_bounded(self) -> None:
        runner = ProcessRunner(max_concurrent=1)
        peak = 0

        async def watch() -> None:
            nonlocal peak
            while True:
                peak = max(peak, runner.active)
                await asyncio.sleep(0.01)

        watcher = asyncio.create_task(watch())
        await asyncio.gather(
            runner.run(_python("import time; time.sleep(0.2)")),
            runner.run(_python("import time; time.sleep(0.2)")),
            runner.run(_python("import time; time.sleep(0.2)")),
        )
        watcher.cancel()

        assert peak == 1
