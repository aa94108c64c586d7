"""API layer module.

Contains FastAPI routers, request/response schemas, dependencies and
the mapping of domain errors to HTTP responses.
"""
