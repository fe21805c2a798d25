"""
Web UI Module - FastAPI-based JSON API
======================================

This module exposes LCC Assistant over HTTP:
- Responder endpoint
- Workflow listing, linting and stateless run transitions
"""

from .app import create_app, run_app
from .routes import router

__all__ = [
    "create_app",
    "run_app",
    "router",
]
