"""Entry generation: single-concept pipeline, queue-driven bulk runs, stale regeneration and concept discovery."""
