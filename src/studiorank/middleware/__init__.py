# src/studiorank/middleware/__init__.py

"""Middleware components for StudioRank API."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
