"""Data models for the FastAPI service.

This package contains Pydantic models for stored rows, patch payloads and
response envelopes.
"""
