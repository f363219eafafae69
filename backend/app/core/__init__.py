"""
Core module for application configuration and utilities.

Note: scoring and attempt modules are not imported at package level to avoid
circular imports with app.models (which imports config from app.core).
Import them directly: from app.core.scoring import ...
"""
from .config import settings

__all__ = ["settings"]
