"""Pydantic models de request e response da API."""
