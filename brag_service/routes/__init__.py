"""
Brag service route modules.
"""

from .brag import router as brag_router

__all__ = ["brag_router"]
