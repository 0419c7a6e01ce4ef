"""
Security Service
Customer token validation and manager credential checks
"""

import hmac
from datetime import datetime, timezone
import logging

import asyncpg

from app.models.customer import CustomerToken, Manager
from app.services.errors import ExpiredError, InternalError, NoSuchUserError
from app.utils.database import DATABASE_ERRORS

logger = logging.getLogger(__name__)


class SecurityService:
    """Token and manager authentication service"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def auth(self, login: str, password: str) -> bool:
        """
        Check manager credentials

        Managers' passwords are stored and compared as plain text. Do not
        reuse this pattern for new principal types.

        Returns:
            bool: True only on an exact match, False on mismatch or any error
        """
        try:
            record = await self.pool.fetchrow(
                "SELECT login, password FROM managers WHERE login = $1",
                login
            )
        except DATABASE_ERRORS as e:
            logger.error(f"Manager lookup failed: {e}")
            return False

        if record is None:
            logger.warning("Manager authentication failed: unknown login")
            return False

        manager = Manager(login=record['login'], password=record['password'])
        if not hmac.compare_digest(password.encode('utf-8'), manager.password.encode('utf-8')):
            logger.warning(f"Manager authentication failed: {login}")
            return False

        return True

    async def authenticate_customer(self, token: str) -> int:
        """
        Resolve a token to its customer id

        Raises:
            NoSuchUserError: token unknown
            ExpiredError: token past its expiry (the row is kept)
            InternalError: database failure
        """
        try:
            record = await self.pool.fetchrow(
                "SELECT customer_id, expire FROM customers_tokens WHERE token = $1",
                token
            )
        except DATABASE_ERRORS as e:
            logger.error(f"Token lookup failed: {e}")
            raise InternalError()

        if record is None:
            raise NoSuchUserError()

        customer_token = CustomerToken(
            token=token,
            customer_id=record['customer_id'],
            expire=record['expire']
        )
        if customer_token.is_expired(datetime.now(timezone.utc)):
            raise ExpiredError()

        return customer_token.customer_id

    async def purge_expired_tokens(self) -> int:
        """
        Delete expired token rows

        Returns:
            int: number of deleted rows
        """
        try:
            result = await self.pool.execute(
                "DELETE FROM customers_tokens WHERE expire < CURRENT_TIMESTAMP"
            )
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to purge expired tokens: {e}")
            raise InternalError()

        # asyncpg returns the command tag, e.g. "DELETE 3"
        deleted = int(result.split()[-1]) if result else 0
        logger.info(f"Purged {deleted} expired tokens")
        return deleted
