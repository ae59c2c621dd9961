"""Comandos `voxtract extract` e `voxtract info`.

Sem ``--server`` o pipeline roda no processo local. Com ``--server`` os
comandos sao thin clients HTTP do API Server.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any

import click

from voxtract._types import ProgressKind
from voxtract.cli.main import cli
from voxtract.logging import configure_logging

if TYPE_CHECKING:
    from voxtract._types import ProgressEvent
    from voxtract.pipeline.orchestrator import JobOrchestrator

# Extracao completa de videos longos pode levar varios minutos
HTTP_TIMEOUT_S = 1800.0

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Arquivo YAML de configuracao do pipeline.",
)
_server_option = click.option(
    "--server",
    "server_url",
    default=None,
    help="URL do API Server (ex: http://localhost:3001). Default: execucao local.",
)


@cli.command()
@click.argument("url")
@click.option("--quick", is_flag=True, default=False, help="Apenas download, sem filtros.")
@click.option("--keep-temp", is_flag=True, default=False, help="Mantem arquivos intermediarios.")
@_config_option
@_server_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Imprime o resultado em JSON.")
def extract(
    url: str,
    quick: bool,
    keep_temp: bool,
    config_path: str | None,
    server_url: str | None,
    as_json: bool,
) -> None:
    """Extrai a voz limpa (WAV + MP3) de um video do YouTube."""
    if server_url:
        endpoint = "/api/quick-extract" if quick else "/api/extract"
        body: dict[str, Any] = {"url": url}
        if not quick:
            body["cleanupTemp"] = not keep_temp
        payload = _post_json(server_url, endpoint, body)
    else:
        from voxtract.pipeline.orchestrator import ExtractOptions

        configure_logging(level="WARNING")
        orchestrator = _local_orchestrator(config_path)
        options = ExtractOptions(cleanup_temp=not keep_temp, quick=quick, listener=_print_progress)
        result = asyncio.run(orchestrator.run(url, options))
        payload = result.as_dict()

    _print_result(payload, as_json)
    if not payload.get("success"):
        sys.exit(1)


@cli.command()
@click.argument("url")
@_config_option
@_server_option
def info(url: str, config_path: str | None, server_url: str | None) -> None:
    """Mostra metadados de um video sem baixa-lo."""
    if server_url:
        payload = _post_json(server_url, "/api/video-info", {"url": url})
    else:
        configure_logging(level="WARNING")
        orchestrator = _local_orchestrator(config_path)
        payload = asyncio.run(orchestrator.get_video_info(url))

    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    if not payload.get("success"):
        sys.exit(1)


def _local_orchestrator(config_path: str | None) -> JobOrchestrator:
    from voxtract.config.pipeline import load_config
    from voxtract.exceptions import ConfigError, InvalidInputError
    from voxtract.pipeline.orchestrator import JobOrchestrator

    try:
        return JobOrchestrator.from_config(load_config(config_path))
    except (ConfigError, InvalidInputError) as exc:
        click.echo(f"Erro: {exc}", err=True)
        sys.exit(1)


def _post_json(server_url: str, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
    """Envia body JSON ao server e devolve o payload de resposta."""
    import httpx

    url = f"{server_url.rstrip('/')}{endpoint}"
    try:
        response = httpx.post(url, json=body, timeout=HTTP_TIMEOUT_S)
    except httpx.ConnectError:
        click.echo(
            f"Erro: servidor nao disponivel em {server_url}. Execute 'voxtract serve' primeiro.",
            err=True,
        )
        sys.exit(1)

    try:
        payload = response.json()
    except ValueError:
        click.echo(f"Erro ({response.status_code}): {response.text}", err=True)
        sys.exit(1)
    if not isinstance(payload, dict):
        click.echo(f"Erro ({response.status_code}): resposta inesperada", err=True)
        sys.exit(1)
    return payload


def _print_progress(event: ProgressEvent) -> None:
    if event.stage is None:
        return
    if event.kind is ProgressKind.STAGE_STARTED:
        click.echo(f"-> {event.stage.value}", err=True)
    elif event.kind is ProgressKind.STAGE_FAILED:
        click.echo(f"   falhou: {event.message}", err=True)


def _print_result(payload: dict[str, Any], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not payload.get("success"):
        click.echo(f"Erro: {payload.get('error')}", err=True)
        if payload.get("details"):
            click.echo(f"Detalhes: {payload['details']}", err=True)
        if payload.get("stage"):
            click.echo(f"Stage: {payload['stage']}", err=True)
        return

    click.echo(payload.get("message", ""))
    for fmt, path in (payload.get("outputFiles") or {}).items():
        if path:
            click.echo(f"  {fmt}: {path}")
