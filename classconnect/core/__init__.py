"""Core: configuration, lifespan, exception handlers and rate limiting."""
