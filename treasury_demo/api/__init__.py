"""FastAPI application and routes."""
from .main import create_app
from .schemas import ApiResponse, api_response

__all__ = ["ApiResponse", "api_response", "create_app"]
