"""
API routes for the customer service
"""

from . import customers, health

__all__ = ["customers", "health"]
