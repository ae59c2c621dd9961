"""Fixtures compartilhadas para todos os testes."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.fakes import FakeDownloadEngine, FakeTranscodeEngine, make_orchestrator
from voxtract.config.pipeline import PipelineConfig

if TYPE_CHECKING:
    from pathlib import Path

    from voxtract.pipeline.orchestrator import JobOrchestrator


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    """Configuracao com diretorios isolados por teste."""
    return PipelineConfig(temp_dir=tmp_path / "temp", output_dir=tmp_path / "output")


@pytest.fixture
def transcode_engine() -> FakeTranscodeEngine:
    return FakeTranscodeEngine()


@pytest.fixture
def download_engine() -> FakeDownloadEngine:
    return FakeDownloadEngine()


@pytest.fixture
def orchestrator(
    pipeline_config: PipelineConfig,
    transcode_engine: FakeTranscodeEngine,
    download_engine: FakeDownloadEngine,
) -> JobOrchestrator:
    """Orchestrator sobre os engines fake das fixtures."""
    return make_orchestrator(pipeline_config, transcode_engine, download_engine)
