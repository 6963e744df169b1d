"""API Routes - Domain-based routing"""

from .automation import router as automation_router
from .fetch import router as fetch_router

__all__ = [
    'automation_router',
    'fetch_router',
]
