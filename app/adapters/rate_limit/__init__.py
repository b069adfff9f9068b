"""Rate limiting adapters.

A small abstraction layer: the service starts with an in-memory limiter and
can move to Redis or another shared store without changing the API layer.
"""
