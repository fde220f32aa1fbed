"""
Routes package.
"""

from .settings import router as settings_router
from .sync import router as sync_router

__all__ = [
    "settings_router",
    "sync_router",
]
