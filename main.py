"""Cloud Run Entry Point - Root Module.

Exposes the FastAPI application for the ASGI server
(e.g. `uvicorn main:app`).
"""

from api.main import app

__all__ = [
    "app",
]
