"""HTTP API for the trip assistant."""
from .routes import router

__all__ = ["router"]
