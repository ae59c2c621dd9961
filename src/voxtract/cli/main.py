"""Grupo principal de comandos CLI do Voxtract."""

from __future__ import annotations

import click

import voxtract


@click.group()
@click.version_option(version=voxtract.__version__, prog_name="voxtract")
def cli() -> None:
    """Voxtract — extracao de voz limpa a partir de videos do YouTube."""
