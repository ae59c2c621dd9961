"""CLI do Voxtract.

Registra todos os comandos no grupo principal.
"""

from voxtract.cli.check import check
from voxtract.cli.extract import extract, info
from voxtract.cli.main import cli
from voxtract.cli.serve import serve

__all__ = [
    "check",
    "cli",
    "extract",
    "info",
    "serve",
]
