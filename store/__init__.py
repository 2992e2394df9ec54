"""On-disk persistence: encyclopedia entries, the generation queue, rate-limit counters."""
