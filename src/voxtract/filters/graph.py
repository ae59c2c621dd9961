"""FilterGraphBuilder — parametros ajustaveis -> FilterSpec canonico.

Ordenacao por proposito (nao e cosmetica):

    noise-reduction:   highpass -> lowpass -> afftdn -> compand
    vocal-enhancement: highpass -> lowpass -> afftdn -> equalizer -> compand -> loudnorm
    silence-removal:   silenceremove (inicio) -> silenceremove (fim)

Filtros de frequencia precedem a compressao dinamica, que precede a
normalizacao de loudness: o compand reage ao noise floor que sobra depois
da filtragem.

Tudo aqui e puro: sem arquivos, sem processos.
"""

from __future__ import annotations

from pydantic import BaseModel

from voxtract._types import FilterOperation, FilterPurpose, FilterSpec
from voxtract.config.filters import (
    CompandParams,
    NoiseReductionParams,
    SilenceRemovalParams,
    VocalEnhancementParams,
)
from voxtract.exceptions import InvalidInputError

_PARAMS_BY_PURPOSE: dict[FilterPurpose, type[BaseModel]] = {
    FilterPurpose.NOISE_REDUCTION: NoiseReductionParams,
    FilterPurpose.VOCAL_ENHANCEMENT: VocalEnhancementParams,
    FilterPurpose.SILENCE_REMOVAL: SilenceRemovalParams,
}

# O texto de -af passa por dois parsers: o do filtergraph e depois o das opcoes
_OPTION_SPECIAL_CHARS = ("\\", "'", ":")
_GRAPH_SPECIAL_CHARS = ("\\", "'", "[", "]", ",", ";")


def build(
    purpose: FilterPurpose | str,
    params: BaseModel | None = None,
) -> FilterSpec:
    """Constroi o FilterSpec canonico para um proposito.

    Args:
        purpose: Proposito do graph (enum ou valor, ex: "noise-reduction").
        params: Parametros do proposito. None usa os defaults.

    Returns:
        FilterSpec imutavel com as operacoes na ordem canonica.

    Raises:
        InvalidInputError: Proposito desconhecido, params do tipo errado ou
            valores fora de faixa.
    """
    resolved = _resolve_purpose(purpose)
    expected = _PARAMS_BY_PURPOSE[resolved]
    if params is None:
        params = expected()
    elif not isinstance(params, expected):
        raise InvalidInputError(
            f"Parametros de '{resolved.value}' devem ser {expected.__name__}, "
            f"recebido {type(params).__name__}"
        )

    if isinstance(params, NoiseReductionParams):
        return _noise_reduction(params)
    if isinstance(params, VocalEnhancementParams):
        return _vocal_enhancement(params)
    return _silence_removal(params)  # type: ignore[arg-type]


def serialize(spec: FilterSpec) -> str:
    """Converte FilterSpec no argumento textual de ``-af`` do ffmpeg.

    Formato: ``nome=k=v:k=v`` por operacao, operacoes separadas por virgula.
    Operacao sem parametros vira apenas ``nome``.
    """
    parts: list[str] = []
    for op in spec.operations:
        if not op.params:
            parts.append(op.name)
            continue
        args = ":".join(f"{key}={_escape(value)}" for key, value in op.params)
        parts.append(f"{op.name}={args}")
    return ",".join(parts)


def _resolve_purpose(purpose: FilterPurpose | str) -> FilterPurpose:
    if isinstance(purpose, FilterPurpose):
        return purpose
    try:
        return FilterPurpose(purpose)
    except ValueError:
        valid = ", ".join(p.value for p in FilterPurpose)
        raise InvalidInputError(
            f"Proposito de filtro '{purpose}' invalido. Valores aceitos: {valid}"
        ) from None


def _noise_reduction(params: NoiseReductionParams) -> FilterSpec:
    _check_band(params.high_pass_hz, params.low_pass_hz)
    return FilterSpec(
        purpose=FilterPurpose.NOISE_REDUCTION,
        operations=(
            _op("highpass", f=params.high_pass_hz),
            _op("lowpass", f=params.low_pass_hz),
            _op("afftdn", nf=params.noise_floor_db),
            _compand(params.compand),
        ),
    )


def _vocal_enhancement(params: VocalEnhancementParams) -> FilterSpec:
    _check_band(params.high_pass_hz, params.low_pass_hz)
    if params.eq_frequency_hz <= 0 or params.eq_width_hz <= 0:
        raise InvalidInputError("Frequencia e largura do equalizador devem ser positivas")
    return FilterSpec(
        purpose=FilterPurpose.VOCAL_ENHANCEMENT,
        operations=(
            _op("highpass", f=params.high_pass_hz),
            _op("lowpass", f=params.low_pass_hz),
            _op("afftdn", nf=params.noise_floor_db),
            _op(
                "equalizer",
                f=params.eq_frequency_hz,
                width_type="h",
                width=params.eq_width_hz,
                g=params.eq_gain_db,
            ),
            _compand(params.compand),
            _op(
                "loudnorm",
                I=params.loudness_target_lufs,
                TP=params.true_peak_db,
                LRA=params.loudness_range_lu,
            ),
        ),
    )


def _silence_removal(params: SilenceRemovalParams) -> FilterSpec:
    if params.min_duration_s < 0:
        raise InvalidInputError("Duracao minima de silencio nao pode ser negativa")
    if params.threshold_db > 0:
        raise InvalidInputError("Threshold de silencio deve ser <= 0 dB")
    threshold = f"{_format_number(params.threshold_db)}dB"
    return FilterSpec(
        purpose=FilterPurpose.SILENCE_REMOVAL,
        operations=(
            _op(
                "silenceremove",
                start_periods=1,
                start_duration=params.min_duration_s,
                start_threshold=threshold,
                detection=params.detection,
            ),
            _op(
                "silenceremove",
                stop_periods=-1,
                stop_duration=params.min_duration_s,
                stop_threshold=threshold,
                detection=params.detection,
            ),
        ),
    )


def _compand(params: CompandParams) -> FilterOperation:
    # "soft-knee" tem hifen, nao da para passar como kwarg
    return FilterOperation(
        name="compand",
        params=(
            ("attacks", _format_number(params.attacks)),
            ("decays", _format_number(params.decays)),
            ("points", params.points),
            ("soft-knee", _format_number(params.soft_knee)),
            ("gain", _format_number(params.gain)),
            ("volume", _format_number(params.volume)),
            ("delay", _format_number(params.delay)),
        ),
    )


def _check_band(high_pass_hz: float, low_pass_hz: float) -> None:
    if high_pass_hz <= 0 or low_pass_hz <= 0:
        raise InvalidInputError("Frequencias de corte devem ser positivas")
    if low_pass_hz <= high_pass_hz:
        raise InvalidInputError(
            f"low-pass ({_format_number(low_pass_hz)} Hz) deve ser maior que "
            f"high-pass ({_format_number(high_pass_hz)} Hz)"
        )


def _op(name: str, **params: object) -> FilterOperation:
    return FilterOperation(
        name=name,
        params=tuple((key, _format_value(value)) for key, value in params.items()),
    )


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return _format_number(value)
    return str(value)


def _format_number(value: float) -> str:
    """Formata numero de forma deterministica: 80.0 -> "80", -1.5 -> "-1.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _escape(value: str) -> str:
    return _escape_level(_escape_level(value, _OPTION_SPECIAL_CHARS), _GRAPH_SPECIAL_CHARS)


def _escape_level(value: str, special: tuple[str, ...]) -> str:
    for char in special:
        value = value.replace(char, "\\" + char)
    return value
