"""Configuracao do pipeline de extracao (voxtract.yaml)."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from voxtract.config.filters import (
    NoiseReductionParams,
    SilenceRemovalParams,
    VocalEnhancementParams,
)
from voxtract.exceptions import ConfigParseError, ConfigValidationError


def _default_ytdlp_command() -> list[str]:
    return [sys.executable, "-m", "yt_dlp"]


class AudioSettings(BaseModel):
    """Formato PCM canonico usado entre stages e formato do MP3 final."""

    sample_rate: int = Field(default=44100, gt=0)
    channels: int = Field(default=1, ge=1, le=8)
    codec: str = "pcm_s16le"
    mp3_bitrate: str = "192k"


class EngineSettings(BaseModel):
    """Binarios dos engines externos e limites de execucao."""

    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    ytdlp_command: list[str] = Field(default_factory=_default_ytdlp_command)
    max_concurrent_processes: int = Field(default=2, ge=1)
    stage_timeout_s: float | None = Field(default=None, gt=0)
    terminate_grace_s: float = Field(default=5.0, gt=0)


class PipelineConfig(BaseModel):
    """Configuracao completa do pipeline.

    Passada explicitamente ao JobOrchestrator; nenhum componente le
    configuracao global.
    """

    temp_dir: Path = Path("temp")
    output_dir: Path = Path("output")
    remove_silence: bool = False
    audio: AudioSettings = AudioSettings()
    engines: EngineSettings = EngineSettings()
    noise_reduction: NoiseReductionParams = NoiseReductionParams()
    vocal_enhancement: VocalEnhancementParams = VocalEnhancementParams()
    silence_removal: SilenceRemovalParams = SilenceRemovalParams()

    @classmethod
    def from_yaml_path(cls, path: str | Path) -> PipelineConfig:
        """Carrega configuracao a partir de arquivo YAML."""
        path = Path(path)
        if not path.exists():
            raise ConfigParseError(str(path), "Arquivo nao encontrado")

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigParseError(str(path), f"Erro ao ler arquivo: {e}") from e

        return cls.from_yaml_string(raw, source_path=str(path))

    @classmethod
    def from_yaml_string(cls, raw: str, source_path: str = "<string>") -> PipelineConfig:
        """Carrega configuracao a partir de string YAML."""
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigParseError(source_path, f"YAML invalido: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigParseError(source_path, "Conteudo YAML deve ser um mapeamento")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ]
            raise ConfigValidationError(source_path, errors) from e

    def with_env_overrides(self) -> PipelineConfig:
        """Aplica overrides de VOXTRACT_TEMP_DIR e VOXTRACT_OUTPUT_DIR."""
        updates: dict[str, Path] = {}
        temp_dir = os.environ.get("VOXTRACT_TEMP_DIR")
        if temp_dir:
            updates["temp_dir"] = Path(temp_dir).expanduser()
        output_dir = os.environ.get("VOXTRACT_OUTPUT_DIR")
        if output_dir:
            updates["output_dir"] = Path(output_dir).expanduser()
        if not updates:
            return self
        return self.model_copy(update=updates)


def load_config(path: str | Path | None = None) -> PipelineConfig:
    """Carrega configuracao do YAML (se informado) e aplica overrides do ambiente."""
    config = PipelineConfig.from_yaml_path(path) if path is not None else PipelineConfig()
    return config.with_env_overrides()
