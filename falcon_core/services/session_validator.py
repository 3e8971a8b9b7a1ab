"""Portal session validation and logout."""

from dataclasses import dataclass
from datetime import datetime

from falcon_core.core.clock import Clock, utc_now
from falcon_core.services.token_store import TokenKind, TokenStore


@dataclass(frozen=True)
class SessionStatus:
    """Outcome of a session check.

    ``email`` and ``expires_at`` are set only when ``valid`` is True.
    """

    valid: bool
    email: str | None = None
    order_id: str | None = None
    expires_at: datetime | None = None


_INVALID = SessionStatus(valid=False)


class SessionValidator:
    """Checks and revokes session tokens issued by MagicLinkAuthenticator.

    Validation never extends a session (no sliding expiration).

    Args:
        store: Token storage shared with the authenticator.
        clock: Returns the current time. Injected for tests.
    """

    def __init__(self, store: TokenStore, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    def validate(self, session_token: str | None) -> SessionStatus:
        """Check whether a session token is current.

        Never raises. Missing, unknown, expired and one-time tokens
        are all reported as invalid.
        """
        if not session_token:
            return _INVALID

        self._store.sweep_expired()
        record = self._store.get(session_token)
        if record is None or record.kind is not TokenKind.SESSION:
            return _INVALID
        if record.is_expired(self._clock()):
            return _INVALID

        return SessionStatus(
            valid=True,
            email=record.email,
            order_id=record.order_id,
            expires_at=record.expires_at,
        )

    def invalidate(self, session_token: str | None) -> None:
        """Delete a session token. Idempotent; unknown tokens are ignored."""
        if session_token:
            self._store.delete(session_token)
