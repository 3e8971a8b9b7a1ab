"""In-memory token store for portal magic links and sessions.

Holds both one-time magic-link tokens and the session tokens they are
exchanged for. A token is readable only while it is unexpired and
unconsumed; expired records are removed lazily on access.

Durability: a process restart drops every outstanding link and session.
"""

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from falcon_core.core.clock import Clock, utc_now

# 32 random bytes, hex-encoded (256 bits of entropy)
_TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate an opaque, unguessable token string."""
    return secrets.token_hex(_TOKEN_BYTES)


class TokenKind(str, Enum):
    """What a stored token grants."""

    ONE_TIME = "one_time"
    SESSION = "session"


@dataclass(frozen=True)
class TokenRecord:
    """A stored token and the identity it is bound to.

    Attributes:
        token: The opaque token string (store key).
        email: Identity the token is bound to.
        kind: ONE_TIME for magic links, SESSION for portal sessions.
        expires_at: Absolute expiry (UTC).
        order_id: Optional order the link was requested for.
    """

    token: str
    email: str
    kind: TokenKind
    expires_at: datetime
    order_id: str | None = None

    def is_expired(self, now: datetime) -> bool:
        """A record is expired from its expiry instant onwards."""
        return now >= self.expires_at


class TokenStore(Protocol):
    """Storage contract required by the authenticator and validator."""

    def put(self, record: TokenRecord) -> None: ...

    def get(self, token: str) -> TokenRecord | None: ...

    def take(self, token: str) -> TokenRecord | None: ...

    def delete(self, token: str) -> None: ...

    def sweep_expired(self) -> int: ...


class InMemoryTokenStore:
    """Dict-backed TokenStore.

    Every operation holds a lock, so get-and-delete (``take``) is atomic
    even when called from worker threads. Within the event loop all
    methods are synchronous and never interleave.

    Args:
        clock: Returns the current time. Injected for tests.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._store: dict[str, TokenRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._store)

    def put(self, record: TokenRecord) -> None:
        """Insert or overwrite the record keyed by its token."""
        with self._lock:
            self._store[record.token] = record

    def get(self, token: str) -> TokenRecord | None:
        """Return the record if present and unexpired.

        An expired record found here is removed.
        """
        with self._lock:
            return self._live_record(token)

    def take(self, token: str) -> TokenRecord | None:
        """Remove and return the record if present and unexpired.

        At most one caller can take a given token.
        """
        with self._lock:
            record = self._live_record(token)
            if record is not None:
                del self._store[token]
            return record

    def delete(self, token: str) -> None:
        """Remove the record. Deleting an absent token is a no-op."""
        with self._lock:
            self._store.pop(token, None)

    def sweep_expired(self) -> int:
        """Remove all expired records.

        Returns:
            Number of records removed.
        """
        now = self._clock()
        with self._lock:
            expired = [
                token
                for token, record in self._store.items()
                if record.is_expired(now)
            ]
            for token in expired:
                del self._store[token]
        return len(expired)

    def clear(self) -> None:
        """Remove all records (for testing)."""
        with self._lock:
            self._store.clear()

    def _live_record(self, token: str) -> TokenRecord | None:
        # Caller holds the lock.
        record = self._store.get(token)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            del self._store[token]
            return None
        return record


# Process-wide store, created at startup
_token_store: InMemoryTokenStore | None = None


def init_token_store(*, clock: Clock = utc_now) -> InMemoryTokenStore:
    """Create the process-wide token store.

    Called once from the application lifespan. Replaces any existing store.

    Returns:
        The new store.
    """
    global _token_store
    _token_store = InMemoryTokenStore(clock=clock)
    return _token_store


def get_token_store() -> InMemoryTokenStore:
    """Get the process-wide token store, creating it on first use.

    Returns:
        The InMemoryTokenStore singleton.
    """
    global _token_store
    if _token_store is None:
        _token_store = InMemoryTokenStore()
    return _token_store


def reset_token_store() -> None:
    """Reset the token store singleton (for testing)."""
    global _token_store
    if _token_store is not None:
        _token_store.clear()
    _token_store = None
