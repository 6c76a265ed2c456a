"""Infrastructure layer: resilience, HTTP transport, DI and logging."""
