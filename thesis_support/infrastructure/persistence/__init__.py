"""Persistence: PostgreSQL connection pool and session dependency."""
