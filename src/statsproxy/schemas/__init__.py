"""Pydantic schemas for API request and response bodies."""
