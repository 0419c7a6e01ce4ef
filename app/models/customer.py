"""
Customer Models
Database record definitions for customers, their tokens and managers
"""

from typing import Optional, Any, Mapping
from datetime import datetime, timezone
from dataclasses import dataclass


@dataclass
class Customer:
    """Customer database model (the password hash is never loaded into it)"""
    id: int
    name: str
    phone: str
    active: bool
    created: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Customer":
        """Build from an asyncpg record or any mapping with the same keys"""
        return cls(
            id=record['id'],
            name=record['name'],
            phone=record['phone'],
            active=record['active'],
            created=record['created'],
        )


@dataclass
class CustomerToken:
    """Customer login token"""
    token: str
    customer_id: int
    expire: Optional[datetime]

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A token without an expiry never authenticates"""
        if self.expire is None:
            return True
        now = now or datetime.now(timezone.utc)
        expire = self.expire
        if expire.tzinfo is None:
            expire = expire.replace(tzinfo=timezone.utc)
        return now > expire


@dataclass
class Manager:
    """Manager credential (password stored as plain text)"""
    login: str
    password: str
