"""
API Module for the lead qualifier.

FastAPI application with routes for:
- Lead qualification sessions
- Lead dashboard and stats
- Business configuration
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
