"""Portal magic-link URLs and the delivery hand-off.

Builds the ``{site_url}/portal?token=...`` link and the localized message
that carries it. Actual email transport belongs to an external delivery
service; the default sender only logs that a link was issued.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from urllib.parse import urlencode

from falcon_core.core.config import settings
from falcon_core.core.messages import get_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortalLinkMessage:
    """A magic-link message ready for delivery.

    Attributes:
        to_email: Recipient address.
        subject: Localized subject line.
        text: Localized plain-text body containing the link.
        link: The portal URL with the token.
        expires_at: When the token in the link stops working.
    """

    to_email: str
    subject: str
    text: str
    link: str
    expires_at: datetime


class LinkSender(Protocol):
    """Delivers a magic-link message to its recipient."""

    async def send(self, message: PortalLinkMessage) -> None: ...


def build_portal_link(token: str, base_url: str | None = None) -> str:
    """Build the portal URL that exchanges a magic-link token.

    Args:
        token: Plain one-time token.
        base_url: Site base URL. Defaults to ``settings.site_url``.

    Returns:
        URL of the form ``{base_url}/portal?token={token}``.
    """
    base = (base_url or settings.site_url).rstrip("/")
    return f"{base}/portal?{urlencode({'token': token})}"


def build_link_message(
    *,
    to_email: str,
    link: str,
    expires_at: datetime,
    language: str | None = None,
) -> PortalLinkMessage:
    """Compose the localized magic-link message."""
    text = "\n\n".join(
        [
            get_message("link_greeting", language),
            get_message("link_instruction", language),
            link,
            get_message(
                "link_validity", language, minutes=settings.magic_link_ttl_minutes
            ),
        ]
    )
    return PortalLinkMessage(
        to_email=to_email,
        subject=get_message("link_email_subject", language),
        text=text,
        link=link,
        expires_at=expires_at,
    )


class LoggingLinkSender:
    """Default sender: records the issuance without transmitting anything.

    Security: The link itself is only logged in development, since it is
    a bearer credential for the next 15 minutes.
    """

    async def send(self, message: PortalLinkMessage) -> None:
        logger.info(
            "Magic link generated for %s (expires %s)",
            message.to_email,
            message.expires_at.isoformat(),
        )
        if settings.environment == "development":
            logger.info("Magic link: %s", message.link)


_link_sender: LinkSender = LoggingLinkSender()


def get_link_sender() -> LinkSender:
    """Return the configured link sender."""
    return _link_sender


def set_link_sender(sender: LinkSender) -> None:
    """Replace the link sender (delivery integration or tests)."""
    global _link_sender
    _link_sender = sender


async def deliver_magic_link(
    *,
    to_email: str,
    token: str,
    expires_at: datetime,
    language: str | None = None,
) -> None:
    """Compose and hand off a magic-link message.

    Runs as a background task after the response is sent, so delivery
    failures are logged and never surface to the caller.
    """
    message = build_link_message(
        to_email=to_email,
        link=build_portal_link(token),
        expires_at=expires_at,
        language=language,
    )
    try:
        await get_link_sender().send(message)
    except Exception:
        logger.warning("Failed to deliver magic link", exc_info=True)
