"""Business logic services.

This package contains credential and token handling, payload validation,
list query construction, ownership checks and the shared handler flows
used by the routers.
"""
