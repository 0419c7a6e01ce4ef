"""
Customer Service
Customer records, password hashing and login token issuance
"""

import asyncio
import secrets
from datetime import datetime, timedelta, timezone
from typing import List
import logging

import asyncpg
import bcrypt

from app.models.customer import Customer
from app.services.errors import (
    AlreadyExistsError, InternalError, InvalidPasswordError, NotFoundError
)
from app.utils.database import DATABASE_ERRORS

logger = logging.getLogger(__name__)

# Raw bytes of entropy per token; the hex form is twice as long
TOKEN_BYTES = 256

CUSTOMER_COLUMNS = "id, name, phone, active, created"


class CustomerService:
    """Customer management service"""

    def __init__(self, pool: asyncpg.Pool, bcrypt_rounds: int = 12, token_ttl: timedelta = timedelta(hours=1)):
        self.pool = pool
        self.bcrypt_rounds = bcrypt_rounds
        self.token_ttl = token_ttl

    @staticmethod
    def _sync_hash_password(password: str, rounds: int) -> str:
        """Synchronous bcrypt hash (CPU-bound)"""
        salt = bcrypt.gensalt(rounds=rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    async def hash_password(self, password: str) -> str:
        """Hash password using bcrypt in thread pool to avoid blocking"""
        return await asyncio.to_thread(self._sync_hash_password, password, self.bcrypt_rounds)

    @staticmethod
    def _sync_verify_password(password: str, hashed_password: str) -> bool:
        """Synchronous bcrypt verify (CPU-bound, constant time)"""
        try:
            return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False

    @staticmethod
    async def verify_password(password: str, hashed_password: str) -> bool:
        """Verify password against hash in thread pool to avoid blocking"""
        return await asyncio.to_thread(CustomerService._sync_verify_password, password, hashed_password)

    @staticmethod
    def generate_token() -> str:
        """Generate secure login token (hex encoded)"""
        return secrets.token_hex(TOKEN_BYTES)

    async def by_id(self, customer_id: int) -> Customer:
        """
        Get customer by ID

        Raises:
            NotFoundError: no customer with this id
            InternalError: database failure
        """
        try:
            record = await self.pool.fetchrow(
                f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE id = $1",
                customer_id
            )
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to get customer {customer_id}: {e}")
            raise InternalError()

        if record is None:
            raise NotFoundError()
        return Customer.from_record(record)

    async def all(self) -> List[Customer]:
        """All customers ordered by id"""
        return await self._list(f"SELECT {CUSTOMER_COLUMNS} FROM customers ORDER BY id")

    async def all_active(self) -> List[Customer]:
        """Active (not blocked) customers ordered by id"""
        return await self._list(
            f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE active = TRUE ORDER BY id"
        )

    async def _list(self, query: str) -> List[Customer]:
        try:
            records = await self.pool.fetch(query)
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to list customers: {e}")
            raise InternalError()
        return [Customer.from_record(record) for record in records]

    async def create(self, name: str, phone: str, password: str) -> Customer:
        """
        Register new customer

        Args:
            name: Customer name
            phone: Customer phone, used as the login
            password: Plain text password, stored only as a bcrypt hash

        Returns:
            Customer: the stored customer, active
        """
        try:
            password_hash = await self.hash_password(password)
        except ValueError as e:
            logger.error(f"Failed to hash password: {e}")
            raise InternalError()

        try:
            record = await self.pool.fetchrow(
                f"""
                INSERT INTO customers (name, phone, password)
                VALUES ($1, $2, $3)
                RETURNING {CUSTOMER_COLUMNS}
                """,
                name, phone, password_hash
            )
        except asyncpg.UniqueViolationError:
            logger.info("Customer with this phone already exists")
            raise AlreadyExistsError("customer with this phone already exists")
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to create customer: {e}")
            raise InternalError()

        customer = Customer.from_record(record)
        logger.info(f"Customer created with ID: {customer.id}")
        return customer

    async def update(self, customer_id: int, name: str, phone: str) -> Customer:
        """Update name and phone, returning the stored row"""
        try:
            record = await self.pool.fetchrow(
                f"""
                UPDATE customers SET name = $1, phone = $2
                WHERE id = $3
                RETURNING {CUSTOMER_COLUMNS}
                """,
                name, phone, customer_id
            )
        except asyncpg.UniqueViolationError:
            raise AlreadyExistsError("customer with this phone already exists")
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to update customer {customer_id}: {e}")
            raise InternalError()

        if record is None:
            raise NotFoundError()
        return Customer.from_record(record)

    async def remove_by_id(self, customer_id: int) -> Customer:
        """Delete customer, returning the deleted row"""
        customer = await self._returning(
            f"DELETE FROM customers WHERE id = $1 RETURNING {CUSTOMER_COLUMNS}",
            customer_id, "remove"
        )
        logger.info(f"Customer removed: {customer_id}")
        return customer

    async def block_by_id(self, customer_id: int) -> Customer:
        return await self._returning(
            f"UPDATE customers SET active = FALSE WHERE id = $1 RETURNING {CUSTOMER_COLUMNS}",
            customer_id, "block"
        )

    async def unblock_by_id(self, customer_id: int) -> Customer:
        return await self._returning(
            f"UPDATE customers SET active = TRUE WHERE id = $1 RETURNING {CUSTOMER_COLUMNS}",
            customer_id, "unblock"
        )

    async def _returning(self, query: str, customer_id: int, action: str) -> Customer:
        try:
            record = await self.pool.fetchrow(query, customer_id)
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to {action} customer {customer_id}: {e}")
            raise InternalError()

        if record is None:
            raise NotFoundError()
        return Customer.from_record(record)

    async def token_for_customer(self, phone: str, password: str) -> str:
        """
        Issue a login token for phone + password

        Unknown phone and wrong password raise the same InvalidPasswordError.

        Returns:
            str: hex encoded token, valid for the configured TTL
        """
        try:
            record = await self.pool.fetchrow(
                "SELECT id, password FROM customers WHERE phone = $1",
                phone
            )
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to look up customer credentials: {e}")
            raise InternalError()

        if record is None:
            raise InvalidPasswordError()

        if not await self.verify_password(password, record['password']):
            raise InvalidPasswordError()

        token = self.generate_token()
        expire = datetime.now(timezone.utc) + self.token_ttl
        try:
            await self.pool.execute(
                "INSERT INTO customers_tokens (token, customer_id, expire) VALUES ($1, $2, $3)",
                token, record['id'], expire
            )
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to store token for customer {record['id']}: {e}")
            raise InternalError()

        logger.info(f"Token issued for customer: {record['id']}")
        return token
