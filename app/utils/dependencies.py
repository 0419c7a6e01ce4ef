"""
FastAPI Dependencies
Service providers and manager authentication dependencies
"""

from typing import Annotated, Optional
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.config import Settings
from app.services.customer_service import CustomerService
from app.services.security_service import SecurityService

logger = logging.getLogger(__name__)

# Basic auth scheme for managers; auto_error is off so it can be toggled by settings
basic_security = HTTPBasic(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with"""
    return request.app.state.settings


def get_customer_service(request: Request) -> CustomerService:
    """Customer service bound to the application's pool"""
    return request.app.state.customer_service


def get_security_service(request: Request) -> SecurityService:
    """Security service bound to the application's pool"""
    return request.app.state.security_service


async def require_manager(
    settings: Annotated[Settings, Depends(get_app_settings)],
    security_service: Annotated[SecurityService, Depends(get_security_service)],
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_security),
) -> Optional[str]:
    """
    Gate management routes behind manager basic auth when enabled

    Returns:
        str or None: the manager login, None when the check is disabled

    Raises:
        HTTPException: 401 if credentials are missing or wrong
    """
    if not settings.manager_auth_enabled:
        return None

    if credentials is None or not await security_service.auth(credentials.username, credentials.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# Type aliases for cleaner dependency injection
CustomerServiceDep = Annotated[CustomerService, Depends(get_customer_service)]
SecurityServiceDep = Annotated[SecurityService, Depends(get_security_service)]
