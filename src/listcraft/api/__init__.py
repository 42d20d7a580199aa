"""Listcraft trusted intermediary (FastAPI)."""
