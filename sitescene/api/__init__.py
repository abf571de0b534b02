"""
SiteScene REST API.

FastAPI-based REST API exposing a site session.

Usage:
    uvicorn sitescene.api.main:app --reload

    # Or with the CLI
    sitescene serve
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
