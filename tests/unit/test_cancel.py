"""Testes de CancellationToken e CancellationManager."""

from __future__ import annotations

import asyncio

import pytest

from voxtract.exceptions import JobCancelledError
from voxtract.pipeline.cancel import CancellationManager, CancellationToken


class TestCancellationToken:
    def test_initially_not_cancelled(self) -> None:
        token = CancellationToken("job-1")
        assert not token.is_cancelled
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self) -> None:
        token = CancellationToken("job-1")
        token.cancel()
        token.cancel()
        assert token.is_cancelled

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken("job-1")
        token.cancel()
        with pytest.raises(JobCancelledError) as exc_info:
            token.raise_if_cancelled()
        assert exc_info.value.job_id == "job-1"

    async def test_wait_unblocks_on_cancel(self) -> None:
        token = CancellationToken()
        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        token.cancel()
        await asyncio.wait_for(waiter, timeout=1.0)


class TestCancellationManager:
    def test_register_creates_token_with_job_id(self) -> None:
        manager = CancellationManager()
        token = manager.register("job-1")
        assert token.job_id == "job-1"
        assert manager.is_registered("job-1")
        assert manager.active_count == 1

    def test_register_existing_token_sets_job_id(self) -> None:
        manager = CancellationManager()
        token = CancellationToken()
        assert manager.register("job-2", token) is token
        assert token.job_id == "job-2"

    def test_cancel_registered_job(self) -> None:
        manager = CancellationManager()
        token = manager.register("job-1")
        assert manager.cancel("job-1") is True
        assert token.is_cancelled

    def test_cancel_unknown_job(self) -> None:
        assert CancellationManager().cancel("ghost") is False

    def test_unregister_is_idempotent(self) -> None:
        manager = CancellationManager()
        manager.register("job-1")
        manager.unregister("job-1")
        manager.unregister("job-1")
        assert manager.active_count == 0
        assert manager.cancel("job-1") is False

    def test_cancel_all(self) -> None:
        manager = CancellationManager()
        tokens = [manager.register(f"job-{i}") for i in range(3)]
        assert manager.cancel_all() == 3
        assert all(t.is_cancelled for t in tokens)
