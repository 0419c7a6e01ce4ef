"""
Application lifespan tests
"""

import logging
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import create_app
from app.services.customer_service import CustomerService
from app.services.security_service import SecurityService


def test_lifespan_wires_services(test_settings, mock_db_pool):
    mock_db_pool.execute.return_value = "DELETE 0"

    with patch("app.main.create_pool", AsyncMock(return_value=mock_db_pool)), \
            patch("app.main.init_schema", AsyncMock()) as init_schema, \
            patch("app.main.close_pool", AsyncMock()) as close_pool:
        application = create_app(test_settings)
        with TestClient(application) as client:
            assert isinstance(application.state.customer_service, CustomerService)
            assert isinstance(application.state.security_service, SecurityService)
            assert application.state.customer_service.pool is mock_db_pool
            assert application.state.customer_service.bcrypt_rounds == 4
            assert client.get("/health").status_code == 200

    init_schema.assert_awaited_once_with(mock_db_pool)
    close_pool.assert_awaited_once_with(mock_db_pool)
    # Expired tokens are purged on startup
    assert "DELETE FROM customers_tokens" in mock_db_pool.execute.call_args.args[0]


def test_lifespan_skips_schema_when_disabled(test_settings, mock_db_pool):
    settings = test_settings.model_copy(update={"create_schema": False})
    mock_db_pool.execute.side_effect = OSError("down")

    with patch("app.main.create_pool", AsyncMock(return_value=mock_db_pool)), \
            patch("app.main.init_schema", AsyncMock()) as init_schema, \
            patch("app.main.close_pool", AsyncMock()):
        with TestClient(create_app(settings)) as client:
            # A failed cleanup does not prevent startup
            assert client.get("/").status_code == 200

    init_schema.assert_not_awaited()


def test_create_app_configures_logging(test_settings):
    create_app(test_settings)

    assert logging.getLogger("app.services.customer_service").isEnabledFor(logging.INFO)
    assert logging.getLogger("customer_service.requests").isEnabledFor(logging.INFO)
    assert logging.getLogger("app").handlers


def test_create_app_honours_log_level(test_settings):
    create_app(test_settings.model_copy(update={"log_level": "WARNING"}))

    assert not logging.getLogger("app.main").isEnabledFor(logging.INFO)
    assert logging.getLogger("app.main").isEnabledFor(logging.WARNING)
