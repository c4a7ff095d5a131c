"""FastAPI service for todos, addresses and a menu catalogue.

This package provides REST API endpoints with JWT authentication,
ownership-checked mutations and paginated list queries.
"""

__version__ = "1.0.0"
