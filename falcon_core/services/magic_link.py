"""Magic-link authentication for the customer portal.

A customer requests a link for their email (optionally tied to an order).
The link carries a one-time token valid for 15 minutes. Presenting it to
``verify`` consumes it and yields a 24-hour session token.

Token lifecycle:
    ISSUED -> CONSUMED  (verify succeeded, session granted)
    ISSUED -> EXPIRED   (never verified in time, no session)

No throttling happens here: every request issues a fresh link.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from falcon_core.core.clock import Clock, utc_now
from falcon_core.core.errors import InvalidOrExpiredTokenError, ValidationError
from falcon_core.services.token_store import (
    TokenKind,
    TokenRecord,
    TokenStore,
    generate_token,
)

logger = logging.getLogger(__name__)

DEFAULT_LINK_TTL = timedelta(minutes=15)
DEFAULT_SESSION_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class IssuedLink:
    """Result of a magic-link request.

    The caller hands ``token`` to the delivery service; it is never
    returned to the requester outside development.
    """

    token: str
    email: str
    expires_at: datetime
    order_id: str | None = None


@dataclass(frozen=True)
class SessionGrant:
    """Session issued in exchange for a magic-link token."""

    session_token: str
    email: str
    expires_at: datetime
    order_id: str | None = None


class MagicLinkAuthenticator:
    """Issues magic-link tokens and exchanges them for sessions.

    Args:
        store: Token storage shared with the session validator.
        clock: Returns the current time. Injected for tests.
        link_ttl: Lifetime of one-time magic-link tokens.
        session_ttl: Lifetime of session tokens.
    """

    def __init__(
        self,
        store: TokenStore,
        *,
        clock: Clock = utc_now,
        link_ttl: timedelta = DEFAULT_LINK_TTL,
        session_ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> None:
        self._store = store
        self._clock = clock
        self._link_ttl = link_ttl
        self._session_ttl = session_ttl

    def request_link(self, email: str, order_id: str | None = None) -> IssuedLink:
        """Issue a one-time magic-link token for an email.

        Args:
            email: Address the link is sent to. Must be non-empty.
            order_id: Optional order the customer is asking about.

        Returns:
            The issued link token and its expiry.

        Raises:
            ValidationError: If email is empty.
        """
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required")

        self._store.sweep_expired()
        record = TokenRecord(
            token=generate_token(),
            email=email,
            kind=TokenKind.ONE_TIME,
            expires_at=self._clock() + self._link_ttl,
            order_id=order_id or None,
        )
        self._store.put(record)

        logger.info("Magic link issued for %s", email)
        return IssuedLink(
            token=record.token,
            email=record.email,
            expires_at=record.expires_at,
            order_id=record.order_id,
        )

    def verify(self, token: str) -> SessionGrant:
        """Exchange a one-time token for a session token.

        The one-time token is removed and the session created without any
        suspension point in between, so a token yields at most one session.

        Args:
            token: The magic-link token from the portal URL.

        Returns:
            The new session token, bound identity and session expiry.

        Raises:
            ValidationError: If token is empty.
            InvalidOrExpiredTokenError: If the token was never issued,
                has expired, or was already used.
        """
        if not token:
            raise ValidationError("Token is required")

        self._store.sweep_expired()
        record = self._store.take(token)
        if record is None:
            raise InvalidOrExpiredTokenError()

        if record.kind is not TokenKind.ONE_TIME:
            # A session token is not a magic link; leave it intact.
            self._store.put(record)
            raise InvalidOrExpiredTokenError()

        session = TokenRecord(
            token=generate_token(),
            email=record.email,
            kind=TokenKind.SESSION,
            expires_at=self._clock() + self._session_ttl,
            order_id=record.order_id,
        )
        self._store.put(session)

        logger.info("Magic link verified for %s, session issued", record.email)
        return SessionGrant(
            session_token=session.token,
            email=session.email,
            expires_at=session.expires_at,
            order_id=session.order_id,
        )
