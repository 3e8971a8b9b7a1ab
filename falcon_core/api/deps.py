"""Shared dependencies for API endpoints.

Services are built around the process-wide stores created at startup.
"""

import secrets
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Header

from falcon_core.core.config import settings
from falcon_core.core.errors import ForbiddenError, InternalError
from falcon_core.services.magic_link import MagicLinkAuthenticator
from falcon_core.services.monitoring_worker import (
    MonitoringService,
    get_monitoring_service,
)
from falcon_core.services.session_validator import SessionValidator
from falcon_core.services.token_store import get_token_store


def get_authenticator() -> MagicLinkAuthenticator:
    """Magic-link authenticator over the process-wide token store."""
    return MagicLinkAuthenticator(
        get_token_store(),
        link_ttl=timedelta(minutes=settings.magic_link_ttl_minutes),
        session_ttl=timedelta(hours=settings.session_ttl_hours),
    )


def get_session_validator() -> SessionValidator:
    """Session validator over the process-wide token store."""
    return SessionValidator(get_token_store())


def require_admin_key(
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Require the monitoring admin key.

    Security: Constant-time comparison. When no key is configured the
    dashboard endpoints are disabled entirely.

    Raises:
        ForbiddenError: Key not configured, missing, or wrong.
    """
    expected = settings.admin_api_key.get_secret_value()
    if not expected:
        raise ForbiddenError("Monitoring dashboard is disabled")
    if x_admin_key is None or not secrets.compare_digest(
        x_admin_key.encode(), expected.encode()
    ):
        raise ForbiddenError()


def get_monitoring() -> MonitoringService:
    """The running application's monitoring service.

    Raises:
        InternalError: If the lifespan did not initialize it.
    """
    service = get_monitoring_service()
    if service is None:
        raise InternalError("Monitoring service is not initialized")
    return service


Authenticator = Annotated[MagicLinkAuthenticator, Depends(get_authenticator)]
Validator = Annotated[SessionValidator, Depends(get_session_validator)]
Monitoring = Annotated[MonitoringService, Depends(get_monitoring)]
AdminKey = Depends(require_admin_key)
