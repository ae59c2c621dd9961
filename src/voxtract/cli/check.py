"""Comando `voxtract check` — verifica os engines externos instalados."""

from __future__ import annotations

import asyncio
import sys

import click

from voxtract.cli.main import cli
from voxtract.logging import configure_logging


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Arquivo YAML de configuracao do pipeline.",
)
def check(config_path: str | None) -> None:
    """Verifica se ffmpeg, ffprobe e yt-dlp estao disponiveis."""
    from voxtract.config.pipeline import load_config
    from voxtract.engines.check import INSTALL_HINTS, check_dependencies
    from voxtract.engines.runner import ProcessRunner
    from voxtract.exceptions import ConfigError

    configure_logging(level="ERROR")
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Erro: {exc}", err=True)
        sys.exit(1)

    statuses = asyncio.run(check_dependencies(ProcessRunner(), config.engines))

    name_width = max(len(s.name) for s in statuses) + 2
    for status in statuses:
        detail = status.version if status.installed else "NAO ENCONTRADO"
        marker = "ok" if status.installed else "!!"
        click.echo(f"[{marker}] {status.name.ljust(name_width)}{detail}")

    missing = [s for s in statuses if not s.installed and s.critical]
    if not missing:
        click.echo("\nTodas as dependencias estao instaladas.")
        return

    click.echo("\nDependencias obrigatorias ausentes:", err=True)
    for status in missing:
        click.echo(f"  {status.name}:", err=True)
        for hint in INSTALL_HINTS.get(status.name, ()):
            click.echo(f"    {hint}", err=True)
    sys.exit(1)
