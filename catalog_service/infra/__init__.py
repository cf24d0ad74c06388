"""Infrastructure adapters: Redis, database, HTTP, metrics and logging."""
