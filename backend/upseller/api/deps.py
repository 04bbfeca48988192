"""
Shared FastAPI dependencies.

WHAT: Access to the application state from request handlers
WHY: Endpoints must not reach for module globals
HOW: AppState lives on app.state.upseller, set by the lifespan handler
"""

from fastapi import Request

from ..core.state import AppState


def get_state(request: Request) -> AppState:
    """Return the AppState built at startup."""
    return request.app.state.upseller
