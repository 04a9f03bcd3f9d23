"""Infrastructure adapters: logging, metrics, cache and database."""
