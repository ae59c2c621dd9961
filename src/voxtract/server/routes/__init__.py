"""Rotas HTTP do Voxtract."""
