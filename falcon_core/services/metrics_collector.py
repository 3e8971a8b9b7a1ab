"""Site metrics collector.

Probes a target URL and folds four independent checks into one scored
MetricsSnapshot:

1. Reachability: one GET, up iff the status is 2xx.
2. Latency: wall-clock duration of one GET, in milliseconds.
3. TLS: handshake on port 443, valid iff a certificate is presented and
   has not passed its notAfter date.
4. Security headers: one GET, scored on a fixed set of five headers plus
   a bonus for an https final URL.

The checks run concurrently, each bounded by the probe timeout. A failing
check yields its worst-case value and never raises. If the target cannot
be resolved at all, the whole snapshot is the worst case.
"""

import asyncio
import contextlib
import logging
import ssl
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from urllib.parse import urlsplit

import httpx

from falcon_core.core.clock import Clock, utc_now
from falcon_core.services.metrics_types import MetricsSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0

TLS_PORT = 443

SECURITY_HEADERS = (
    "strict-transport-security",
    "x-content-type-options",
    "x-frame-options",
    "content-security-policy",
    "x-xss-protection",
)

_SECURITY_BASE_SCORE = 50
_SECURITY_HEADER_WEIGHT = 50
_HTTPS_BONUS = 10

# (upper bound in ms, score); anything slower scores _SLOWEST_SCORE
_PERFORMANCE_STEPS = ((500, 100), (1000, 80), (2000, 60), (3000, 40))
_SLOWEST_SCORE = 20

_USER_AGENT = "FalconCoreMonitor/1.0"

TlsChecker = Callable[[str, int, float], Awaitable[bool]]
Resolver = Callable[[str], Awaitable[object]]


def score_performance(response_time_ms: int, *, uptime: bool = True) -> int:
    """Map a response time onto a 0-100 performance score.

    Step function: <500ms 100, <1000ms 80, <2000ms 60, <3000ms 40, else 20.

    A zero response time from a site that is also down means the latency
    request failed; it scores 0 rather than falling into the fastest bucket.

    Args:
        response_time_ms: Measured latency; 0 signals a failed request.
        uptime: Reachability result from the same probe.

    Returns:
        Performance score.
    """
    if response_time_ms == 0 and not uptime:
        return 0
    for upper_bound, score in _PERFORMANCE_STEPS:
        if response_time_ms < upper_bound:
            return score
    return _SLOWEST_SCORE


def score_security(headers_found: int, *, https: bool) -> int:
    """Score security posture from header count and scheme.

    ``50 + 50 * found / 5``, plus 10 for https, clamped to [0, 100].
    """
    score = _SECURITY_BASE_SCORE + (
        _SECURITY_HEADER_WEIGHT * headers_found / len(SECURITY_HEADERS)
    )
    if https:
        score += _HTTPS_BONUS
    return int(round(max(0, min(100, score))))


async def check_tls(
    host: str,
    port: int = TLS_PORT,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    clock: Clock = utc_now,
) -> bool:
    """Check that ``host`` presents an unexpired TLS certificate.

    Uses the default verifying context, so an untrusted or expired chain
    fails the handshake and reports False.

    Returns:
        True iff the handshake succeeded and notAfter is in the future.
    """
    context = ssl.create_default_context()
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port, ssl=context, server_hostname=host),
            timeout,
        )
    except (OSError, TimeoutError):
        logger.debug("TLS handshake with %s:%d failed", host, port, exc_info=True)
        return False

    try:
        ssl_object = writer.get_extra_info("ssl_object")
        cert = ssl_object.getpeercert() if ssl_object is not None else None
    finally:
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()

    if not cert or "notAfter" not in cert:
        return False
    not_after = datetime.fromtimestamp(ssl.cert_time_to_seconds(cert["notAfter"]), UTC)
    return not_after > clock()


async def resolve_host(host: str) -> object:
    """Resolve a hostname; raises OSError (socket.gaierror) on failure."""
    return await asyncio.get_running_loop().getaddrinfo(host, None)


def _target_host(target_url: str) -> str:
    parts = urlsplit(target_url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        msg = f"Not an http(s) URL: {target_url!r}"
        raise ValueError(msg)
    return parts.hostname


class MetricsCollector:
    """Runs the probe bundle against a target URL.

    Args:
        timeout_seconds: Upper bound for each sub-check.
        transport: httpx transport override (tests use httpx.MockTransport).
        tls_checker: Coroutine ``(host, port, timeout) -> bool``.
        resolver: Coroutine resolving a hostname, raising OSError on failure.
        clock: Returns the current time for snapshot timestamps.
        timer: Monotonic seconds counter used for latency.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        tls_checker: TlsChecker | None = None,
        resolver: Resolver | None = None,
        clock: Clock = utc_now,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._timeout = timeout_seconds
        self._transport = transport
        self._tls_checker = tls_checker or check_tls
        self._resolver = resolver or resolve_host
        self._clock = clock
        self._timer = timer

    async def probe(self, target_url: str) -> MetricsSnapshot:
        """Probe ``target_url`` and return a scored snapshot.

        Never raises.
        """
        try:
            host = _target_host(target_url)
            await asyncio.wait_for(self._resolver(host), self._timeout)
        except (ValueError, OSError, TimeoutError):
            logger.warning("Probe of %s could not start", target_url, exc_info=True)
            return MetricsSnapshot.worst_case(self._clock())

        try:
            async with self._client() as client:
                uptime, response_time_ms, ssl_valid, security_score = (
                    await asyncio.gather(
                        self._check_uptime(client, target_url),
                        self._check_response_time(client, target_url),
                        self._check_tls(host),
                        self._check_security(client, target_url),
                    )
                )
        except Exception:
            logger.exception("Unexpected error probing %s", target_url)
            return MetricsSnapshot.worst_case(self._clock())

        return MetricsSnapshot(
            timestamp=self._clock(),
            uptime=uptime,
            response_time_ms=response_time_ms,
            performance_score=score_performance(response_time_ms, uptime=uptime),
            security_score=security_score,
            ssl_valid=ssl_valid,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
        )

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        return await asyncio.wait_for(client.get(url), self._timeout)

    async def _check_uptime(self, client: httpx.AsyncClient, url: str) -> bool:
        try:
            response = await self._get(client, url)
        except (httpx.HTTPError, TimeoutError):
            logger.debug("Uptime check failed for %s", url, exc_info=True)
            return False
        return response.is_success

    async def _check_response_time(self, client: httpx.AsyncClient, url: str) -> int:
        start = self._timer()
        try:
            await self._get(client, url)
        except (httpx.HTTPError, TimeoutError):
            logger.debug("Latency check failed for %s", url, exc_info=True)
            return 0
        elapsed_ms = int(round((self._timer() - start) * 1000))
        # 0 is reserved for a failed request
        return max(1, elapsed_ms)

    async def _check_tls(self, host: str) -> bool:
        try:
            return await asyncio.wait_for(
                self._tls_checker(host, TLS_PORT, self._timeout), self._timeout
            )
        except (OSError, TimeoutError):
            logger.debug("TLS check failed for %s", host, exc_info=True)
            return False

    async def _check_security(self, client: httpx.AsyncClient, url: str) -> int:
        try:
            response = await self._get(client, url)
        except (httpx.HTTPError, TimeoutError):
            logger.debug("Security header check failed for %s", url, exc_info=True)
            return 0
        found = sum(1 for header in SECURITY_HEADERS if response.headers.get(header))
        return score_security(found, https=response.url.scheme == "https")
