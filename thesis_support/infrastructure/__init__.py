"""Infrastructure: Redis cache, database pool and upload storage."""
