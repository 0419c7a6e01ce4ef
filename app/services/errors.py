"""
Service Errors
Closed set of domain failures raised by the customer and security services
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Domain error codes"""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_PASSWORD = "invalid_password"
    EXPIRED = "expired"
    NO_SUCH_USER = "no_such_user"
    INTERNAL = "internal"


class ServiceError(Exception):
    """Base class for all service failures"""
    code: ErrorCode = ErrorCode.INTERNAL
    message: str = "internal error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class NotFoundError(ServiceError):
    code = ErrorCode.NOT_FOUND
    message = "item not found"


class AlreadyExistsError(ServiceError):
    code = ErrorCode.ALREADY_EXISTS
    message = "item already exists"


class InvalidPasswordError(ServiceError):
    """Wrong password or unknown login; the two are never told apart"""
    code = ErrorCode.INVALID_PASSWORD
    message = "invalid password"


class ExpiredError(ServiceError):
    code = ErrorCode.EXPIRED
    message = "token is expired"


class NoSuchUserError(ServiceError):
    code = ErrorCode.NO_SUCH_USER
    message = "no such user"


class InternalError(ServiceError):
    code = ErrorCode.INTERNAL
    message = "internal error"
