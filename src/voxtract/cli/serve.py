"""Comando `voxtract serve` — inicia o API Server."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import TYPE_CHECKING

import click

from voxtract.cli.main import cli
from voxtract.logging import configure_logging, get_logger

if TYPE_CHECKING:
    from voxtract.config.pipeline import PipelineConfig

logger = get_logger("cli.serve")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001


@cli.command()
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Host para o API Server.")
@click.option("--port", default=DEFAULT_PORT, type=int, show_default=True, help="Porta HTTP.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Arquivo YAML de configuracao do pipeline.",
)
@click.option(
    "--cors-origins",
    default="*",
    show_default=True,
    help="CORS origins (comma-separated). Vazio desabilita CORS.",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Formato de log.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    show_default=True,
    help="Nivel de log.",
)
def serve(
    host: str,
    port: int,
    config_path: str | None,
    cors_origins: str,
    log_format: str,
    log_level: str,
) -> None:
    """Inicia o Voxtract API Server."""
    from voxtract.config.pipeline import load_config
    from voxtract.exceptions import ConfigError

    configure_logging(log_format=log_format, level=log_level)
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Erro: {exc}", err=True)
        sys.exit(1)

    origins = [o.strip() for o in cors_origins.split(",") if o.strip()] if cors_origins else []
    asyncio.run(_serve(host, port, config, cors_origins=origins))


async def _serve(
    host: str,
    port: int,
    config: PipelineConfig,
    *,
    cors_origins: list[str] | None = None,
) -> None:
    """Fluxo async principal do serve."""
    import uvicorn

    from voxtract.pipeline.cancel import CancellationManager
    from voxtract.pipeline.orchestrator import JobOrchestrator
    from voxtract.server.app import create_app

    # 1. Pipeline
    orchestrator = JobOrchestrator.from_config(config)
    cancellations = CancellationManager()
    logger.info(
        "server_starting",
        host=host,
        port=port,
        temp_dir=str(orchestrator.config.temp_dir),
        output_dir=str(orchestrator.config.output_dir),
        max_concurrent_processes=orchestrator.config.engines.max_concurrent_processes,
    )

    # 2. Create app
    app = create_app(
        orchestrator=orchestrator,
        cancellations=cancellations,
        cors_origins=cors_origins,
    )

    # 3. Setup shutdown
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(s: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=s.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _handle_signal, sig)

    # 4. Run uvicorn
    uv_config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(uv_config)

    server_task = asyncio.create_task(server.serve())

    _done, _ = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    # 5. Graceful shutdown: jobs em execucao terminam seus engines e limpam temporarios
    cancelled = cancellations.cancel_all()
    if cancelled:
        logger.info("running_jobs_cancelled", count=cancelled)
    if not server_task.done():
        server.should_exit = True
        await server_task

    logger.info("server_stopped")
