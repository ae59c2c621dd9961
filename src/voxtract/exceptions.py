"""Exceptions tipadas do Voxtract.

Hierarquia:
    VoxtractError (base)
    +-- ConfigError
    |   +-- ConfigParseError
    |   +-- ConfigValidationError
    +-- InvalidInputError
    +-- DownloadError
    +-- ProcessingError
    +-- MetadataError
    +-- EngineError
    |   +-- EngineNotFoundError
    |   +-- EngineTimeoutError
    +-- JobCancelledError
    +-- CleanupWarning (nunca levantada, apenas logada)
"""

from __future__ import annotations


class VoxtractError(Exception):
    """Base para todas as exceptions do Voxtract."""


# --- Configuracao ---


class ConfigError(VoxtractError):
    """Erro de configuracao do pipeline."""


class ConfigParseError(ConfigError):
    """Falha ao parsear arquivo de configuracao YAML."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Falha ao parsear configuracao '{path}': {reason}")


class ConfigValidationError(ConfigError):
    """Configuracao com campos invalidos."""

    def __init__(self, path: str, errors: list[str]) -> None:
        self.path = path
        self.errors = errors
        detail = "; ".join(errors)
        super().__init__(f"Configuracao '{path}' invalida: {detail}")


# --- Input ---


class InvalidInputError(VoxtractError):
    """Referencia ou parametro de entrada invalido. Nenhum stage executa."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


# --- Stages ---


class DownloadError(VoxtractError):
    """Download engine reportou falha (inalcancavel, restrito, inexistente)."""

    def __init__(self, reference: str, reason: str, diagnostic: str = "") -> None:
        self.reference = reference
        self.reason = reason
        self.diagnostic = diagnostic
        super().__init__(f"Falha ao baixar '{reference}': {reason}")


class ProcessingError(VoxtractError):
    """Falha num stage de transcodificacao."""

    def __init__(self, stage: str, reason: str, diagnostic: str = "") -> None:
        self.stage = stage
        self.reason = reason
        self.diagnostic = diagnostic
        super().__init__(f"Stage '{stage}' falhou: {reason}")


class MetadataError(VoxtractError):
    """Probe de metadados falhou num arquivo existente."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Falha ao ler metadados de '{path}': {reason}")


# --- Engines ---


class EngineError(VoxtractError):
    """Erro relacionado aos engines externos (subprocessos)."""


class EngineNotFoundError(EngineError):
    """Binario do engine nao encontrado no PATH."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"Engine '{binary}' nao encontrado. Verifique a instalacao.")


class EngineTimeoutError(EngineError):
    """Engine nao terminou dentro do timeout do stage."""

    def __init__(self, binary: str, timeout_seconds: float) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Engine '{binary}' nao terminou em {timeout_seconds}s")


# --- Job ---


class JobCancelledError(VoxtractError):
    """Job cancelado pelo caller durante execucao de um stage."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job '{job_id}' foi cancelado")


class CleanupWarning(VoxtractError):
    """Falha nao fatal ao remover arquivo intermediario.

    Nunca e levantada: o TempFileManager apenas a registra e devolve.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Nao foi possivel remover '{path}': {reason}")
