"""Voxtract — pipeline de extracao e limpeza de voz a partir de videos."""

__version__ = "0.1.0"
