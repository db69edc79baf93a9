"""HTTP API for Delta Insight (Starlette, served by uvicorn)."""

from .app import OWNER_HEADER, create_app

__all__ = ["OWNER_HEADER", "create_app"]
