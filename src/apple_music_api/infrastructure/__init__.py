"""Infrastructure layer: signing, HTTP pipeline, backoff and logging."""
