"""Structured logging para o Voxtract.

Usa structlog com stdlib logging como backend. Dois formatos:
- console: legivel para desenvolvimento (default)
- json: estruturado para producao

Todo evento de um job carrega ``job_id`` e ``source_id`` via ``job_logger``,
o que permite filtrar a execucao completa de um pipeline nos logs.
"""

from __future__ import annotations

import logging
import os

import structlog

_configured = False

# Loggers de terceiros que poluem a saida em nivel INFO
_NOISY_LOGGERS = ("uvicorn.access", "asyncio")


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
) -> None:
    """Configura logging estruturado do processo.

    Idempotente — chamadas subsequentes sao ignoradas.

    Args:
        log_format: "json" ou "console". Default via VOXTRACT_LOG_FORMAT ou "console".
        level: Nivel de log (DEBUG, INFO, WARNING, ERROR). Default via
            VOXTRACT_LOG_LEVEL ou "INFO".
    """
    global _configured
    if _configured:
        return

    resolved_format = (log_format or os.environ.get("VOXTRACT_LOG_FORMAT", "console")).lower()
    resolved_level = (level or os.environ.get("VOXTRACT_LOG_LEVEL", "INFO")).upper()

    if resolved_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, resolved_level, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Retorna logger com contexto de componente.

    Args:
        component: Nome do componente (ex: "pipeline.orchestrator", "engines.runner").
    """
    configure_logging()
    return structlog.get_logger().bind(component=component)  # type: ignore[no-any-return]


def job_logger(
    component: str, job_id: str, source_id: str | None = None
) -> structlog.stdlib.BoundLogger:
    """Retorna logger do componente vinculado a um job."""
    return get_logger(component).bind(job_id=job_id, source_id=source_id)
