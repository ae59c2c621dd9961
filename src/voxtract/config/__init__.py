"""Configuracao do pipeline (modelos Pydantic)."""
