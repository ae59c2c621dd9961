"""Parametros ajustaveis dos filter graphs.

Defaults reproduzem o tuning de voz original: cortes em 80 Hz / 8 kHz,
realce de clareza em 3 kHz e normalizacao de loudness em -16 LUFS.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CompandParams(BaseModel):
    """Parametros do compressor/expansor dinamico (compand)."""

    model_config = ConfigDict(frozen=True)

    attacks: float = 0.3
    decays: float = 0.8
    points: str = "-80/-80|-45/-15|-27/-9|0/-7|20/-7"
    soft_knee: float = 6.0
    gain: float = 0.0
    volume: float = -90.0
    delay: float = 0.2


class NoiseReductionParams(BaseModel):
    """Parametros do stage de reducao de ruido."""

    model_config = ConfigDict(frozen=True)

    high_pass_hz: float = 80.0
    low_pass_hz: float = 8000.0
    noise_floor_db: float = -25.0
    compand: CompandParams = CompandParams()


class VocalEnhancementParams(BaseModel):
    """Parametros do stage de realce vocal."""

    model_config = ConfigDict(frozen=True)

    high_pass_hz: float = 80.0
    low_pass_hz: float = 8000.0
    noise_floor_db: float = -20.0
    eq_frequency_hz: float = 3000.0
    eq_width_hz: float = 1000.0
    eq_gain_db: float = 3.0
    compand: CompandParams = CompandParams()
    loudness_target_lufs: float = -16.0
    true_peak_db: float = -1.5
    loudness_range_lu: float = 11.0


class SilenceRemovalParams(BaseModel):
    """Parametros da remocao de silencio no inicio e no fim do audio."""

    model_config = ConfigDict(frozen=True)

    threshold_db: float = -30.0
    min_duration_s: float = 1.0
    detection: str = "peak"
