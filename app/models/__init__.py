"""
Data models for the customer service
"""

from .customer import Customer, CustomerToken, Manager

__all__ = [
    "Customer",
    "CustomerToken",
    "Manager"
]
