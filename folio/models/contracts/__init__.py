"""Pydantic contracts for API requests and responses."""
