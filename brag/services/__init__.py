"""
Services exposing the brag list operations to the surrounding application.
"""

from brag.services.brag_service import BragService

__all__ = ["BragService"]
