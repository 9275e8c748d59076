"""Public lead intake: validation, rate limiting, call dispatch."""
