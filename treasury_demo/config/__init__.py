"""Configuration package for the treasury demo."""
from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
