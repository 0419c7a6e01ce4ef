"""
Customer Routes
Customer management, signup, login tokens and token validation
"""

import re
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse

from app.schemas.customer import (
    CustomerCreateSchema, CustomerSchema, CustomerUpdateSchema,
    TokenRequestSchema, TokenSchema, TokenValidationFailSchema, TokenValidationOkSchema
)
from app.services.errors import ErrorCode, ExpiredError, NoSuchUserError, ServiceError
from app.utils.dependencies import CustomerServiceDep, SecurityServiceDep, require_manager

logger = logging.getLogger(__name__)

# Management routes; manager basic auth applies when enabled in settings
router = APIRouter(dependencies=[Depends(require_manager)])

# Customer self-service routes
api_router = APIRouter()

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_PASSWORD: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NO_SUCH_USER: status.HTTP_404_NOT_FOUND,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

DETAIL_BY_CODE = {
    ErrorCode.NOT_FOUND: "Customer not found",
    ErrorCode.ALREADY_EXISTS: "Customer with this phone already exists",
    ErrorCode.INVALID_PASSWORD: "Invalid login or password",
    ErrorCode.EXPIRED: "Token is expired",
    ErrorCode.NO_SUCH_USER: "Token not found",
    ErrorCode.INTERNAL: "Internal server error",
}

INT64_MAX = 2 ** 63 - 1
_ID_PATTERN = re.compile(r"[0-9]+")


def parse_customer_id(value: Optional[str]) -> int:
    """
    Parse a customer id taken from the path or query string

    Raises:
        HTTPException: 400 when missing, not a decimal number or out of range
    """
    if value is None or not _ID_PATTERN.fullmatch(value):
        logger.info(f"Can't parse customer id: {value!r}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid customer id"
        )

    customer_id = int(value)
    if customer_id > INT64_MAX:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid customer id"
        )
    return customer_id


def service_error_to_http(error: ServiceError) -> HTTPException:
    """Map a domain error to its HTTP status"""
    return HTTPException(
        status_code=STATUS_BY_CODE[error.code],
        detail=DETAIL_BY_CODE[error.code]
    )


@router.get("/active", response_model=List[CustomerSchema])
async def get_active_customers(customer_service: CustomerServiceDep):
    """List active customers ordered by id"""
    try:
        return await customer_service.all_active()
    except ServiceError as e:
        raise service_error_to_http(e)


@router.get("", response_model=List[CustomerSchema])
async def get_customers(customer_service: CustomerServiceDep):
    """List all customers ordered by id"""
    try:
        return await customer_service.all()
    except ServiceError as e:
        raise service_error_to_http(e)


@router.get("/{customer_id}", response_model=CustomerSchema)
async def get_customer(customer_id: str, customer_service: CustomerServiceDep):
    """Get a single customer"""
    parsed_id = parse_customer_id(customer_id)
    try:
        return await customer_service.by_id(parsed_id)
    except ServiceError as e:
        raise service_error_to_http(e)


@router.put("/{customer_id}", response_model=CustomerSchema)
async def update_customer(
    customer_id: str,
    customer_data: CustomerUpdateSchema,
    customer_service: CustomerServiceDep
):
    """Update customer name and phone"""
    parsed_id = parse_customer_id(customer_id)
    try:
        customer = await customer_service.update(parsed_id, customer_data.name, customer_data.phone)
    except ServiceError as e:
        raise service_error_to_http(e)

    logger.info(f"Customer updated: {parsed_id}")
    return customer


@router.post("/{customer_id}/block", response_model=CustomerSchema)
async def block_customer(customer_id: str, customer_service: CustomerServiceDep):
    """Block a customer (active = false)"""
    parsed_id = parse_customer_id(customer_id)
    try:
        customer = await customer_service.block_by_id(parsed_id)
    except ServiceError as e:
        raise service_error_to_http(e)

    logger.info(f"Customer blocked: {parsed_id}")
    return customer


@router.delete("/{customer_id}/block", response_model=CustomerSchema)
async def unblock_customer(customer_id: str, customer_service: CustomerServiceDep):
    """Unblock a customer (active = true)"""
    parsed_id = parse_customer_id(customer_id)
    try:
        customer = await customer_service.unblock_by_id(parsed_id)
    except ServiceError as e:
        raise service_error_to_http(e)

    logger.info(f"Customer unblocked: {parsed_id}")
    return customer


@router.delete("/{customer_id}", response_model=CustomerSchema)
async def remove_customer(customer_id: str, customer_service: CustomerServiceDep):
    """Delete a customer and return the deleted record"""
    parsed_id = parse_customer_id(customer_id)
    try:
        return await customer_service.remove_by_id(parsed_id)
    except ServiceError as e:
        raise service_error_to_http(e)


@router.delete("", response_model=CustomerSchema)
async def remove_customer_by_query(
    customer_service: CustomerServiceDep,
    customer_id: Optional[str] = Query(None, alias="id")
):
    """Delete a customer identified by the ``id`` query parameter"""
    parsed_id = parse_customer_id(customer_id)
    try:
        return await customer_service.remove_by_id(parsed_id)
    except ServiceError as e:
        raise service_error_to_http(e)


@api_router.post("", response_model=CustomerSchema)
async def register_customer(customer_data: CustomerCreateSchema, customer_service: CustomerServiceDep):
    """
    Register new customer

    The password is stored as a bcrypt hash and never returned.
    """
    try:
        return await customer_service.create(
            customer_data.name,
            customer_data.phone,
            customer_data.password
        )
    except ServiceError as e:
        raise service_error_to_http(e)


@api_router.post("/token", response_model=TokenSchema)
async def get_token(login_data: TokenRequestSchema, customer_service: CustomerServiceDep):
    """
    Customer login

    Exchanges phone + password for a login token
    """
    try:
        token = await customer_service.token_for_customer(login_data.login, login_data.password)
    except ServiceError as e:
        if e.code == ErrorCode.INVALID_PASSWORD:
            logger.info("Customer login rejected")
        raise service_error_to_http(e)

    return TokenSchema(token=token)


@api_router.post("/token/validate")
async def validate_token(token_data: TokenSchema, security_service: SecurityServiceDep):
    """
    Validate a login token

    Responds with the token owner's id, or a fail status and reason
    """
    try:
        customer_id = await security_service.authenticate_customer(token_data.token)
    except NoSuchUserError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=TokenValidationFailSchema(reason="not found").model_dump()
        )
    except ExpiredError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=TokenValidationFailSchema(reason="expired").model_dump()
        )
    except ServiceError as e:
        logger.error(f"Token validation error: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(
        content=TokenValidationOkSchema(customer_id=customer_id).model_dump(by_alias=True)
    )
