"""
Backend package for the nearby chat service.

This package provides a FastAPI application plus key-value store and
identity provider abstractions, so the same handlers run against in-memory
backends in tests and Postgres/Redis/Supabase in production.
"""
