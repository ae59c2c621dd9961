"""API HTTP do Voxtract (FastAPI)."""
