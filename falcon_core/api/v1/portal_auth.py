"""Customer portal magic-link endpoints.

Passwordless portal access: request a link by email, exchange the link
token for a session, check a session, and log out.

Endpoints:
- POST /portal-auth/request-link: issue a magic link for an email
- POST /portal-auth/verify-token: exchange a link token for a session token
- POST /portal-auth/validate-session: check a session token
- POST /portal-auth/logout: revoke a session token
"""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse

from falcon_core.api.deps import Authenticator, Validator
from falcon_core.core.config import settings
from falcon_core.core.errors import ValidationError
from falcon_core.core.messages import get_message
from falcon_core.core.portal_links import build_portal_link, deliver_magic_link
from falcon_core.core.rate_limiting import limiter
from falcon_core.core.responses import CamelModel, SuccessResponse

router = APIRouter()


# ===================================================================
# Request / response models
# ===================================================================


class RequestLinkRequest(CamelModel):
    """Request body for POST /portal-auth/request-link.

    ``email`` is optional in the schema so a missing value gets the
    localized "Email is required" message instead of a schema error.
    Languages other than "ar" get English messages.
    """

    email: str | None = None
    order_id: str | None = None
    language: str = "en"


class RequestLinkResponse(SuccessResponse):
    """Response for POST /portal-auth/request-link.

    ``debug_token`` and ``debug_link`` are only populated in development
    with EXPOSE_DEBUG_TOKENS enabled.
    """

    message: str
    debug_token: str | None = None
    debug_link: str | None = None


class VerifyTokenRequest(CamelModel):
    """Request body for POST /portal-auth/verify-token."""

    token: str | None = None


class VerifyTokenResponse(SuccessResponse):
    """Response for POST /portal-auth/verify-token.

    ``expires_at`` is epoch milliseconds, as the portal front-end expects.
    """

    session_token: str
    email: str
    order_id: str | None = None
    expires_at: int


class SessionTokenRequest(CamelModel):
    """Request body carrying a session token (validate-session, logout)."""

    session_token: str | None = None


class SessionStatusResponse(SuccessResponse):
    """Response for POST /portal-auth/validate-session."""

    valid: bool
    email: str | None = None


def _epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


# ===================================================================
# POST /portal-auth/request-link
# ===================================================================


@router.post("/request-link", response_model_exclude_none=True)
@limiter.limit(lambda: settings.rate_limit_magic_link)
async def request_link(
    request: Request,  # noqa: ARG001
    body: RequestLinkRequest,
    background_tasks: BackgroundTasks,
    authenticator: Authenticator,
) -> RequestLinkResponse:
    """Issue a magic link for the given email.

    The link is handed to the delivery hook as a background task so the
    response returns immediately.
    """
    if not (body.email or "").strip():
        raise ValidationError(get_message("email_required", body.language))

    issued = authenticator.request_link(body.email or "", order_id=body.order_id)

    background_tasks.add_task(
        deliver_magic_link,
        to_email=issued.email,
        token=issued.token,
        expires_at=issued.expires_at,
        language=body.language,
    )

    response = RequestLinkResponse(message=get_message("link_sent", body.language))
    if settings.debug_tokens_enabled:
        response.debug_token = issued.token
        response.debug_link = build_portal_link(issued.token)
    return response


# ===================================================================
# POST /portal-auth/verify-token
# ===================================================================


@router.post("/verify-token", response_model_exclude_none=True)
@limiter.limit(lambda: settings.rate_limit_verify)
async def verify_token(
    request: Request,  # noqa: ARG001
    body: VerifyTokenRequest,
    authenticator: Authenticator,
) -> VerifyTokenResponse:
    """Exchange a magic-link token for a 24-hour session token.

    Security: Never-issued, expired and already-used tokens all produce the
    same 401 response, so the endpoint cannot be used to probe tokens.
    """
    grant = authenticator.verify(body.token or "")
    return VerifyTokenResponse(
        session_token=grant.session_token,
        email=grant.email,
        order_id=grant.order_id,
        expires_at=_epoch_millis(grant.expires_at),
    )


# ===================================================================
# POST /portal-auth/validate-session
# ===================================================================


@router.post(
    "/validate-session",
    response_model=SessionStatusResponse,
    response_model_exclude_none=True,
    responses={401: {"model": SessionStatusResponse}},
)
async def validate_session(
    body: SessionTokenRequest,
    validator: Validator,
) -> SessionStatusResponse | JSONResponse:
    """Report whether a session token is still valid."""
    status = validator.validate(body.session_token)
    if not status.valid:
        return JSONResponse(
            status_code=401,
            content=SessionStatusResponse(success=False, valid=False).model_dump(
                by_alias=True, exclude_none=True
            ),
        )
    return SessionStatusResponse(valid=True, email=status.email)


# ===================================================================
# POST /portal-auth/logout
# ===================================================================


@router.post("/logout")
async def logout(
    validator: Validator,
    body: SessionTokenRequest | None = None,
) -> SuccessResponse:
    """Revoke a session token. Always succeeds, even without a body."""
    validator.invalidate(body.session_token if body else None)
    return SuccessResponse()
