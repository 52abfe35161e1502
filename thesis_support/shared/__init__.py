"""Shared helpers: logging setup and datetime utilities."""
