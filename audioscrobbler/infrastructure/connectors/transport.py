"""HTTP transport for the submission and radio servers.

Executes one exchange at a time against a URL and returns the response body
split into lines. The transport enforces a minimum gap between the start of
any two exchanges, keeps the session cookie jar attached to every request,
and turns network failures into ``TransportError`` so callers can tell them
apart from protocol-level rejections.
"""

import asyncio
import time
from typing import ClassVar

from attrs import define, field
import backoff
import httpx

from audioscrobbler.config import ScrobblerConfig, get_logger
from audioscrobbler.domain.entities import SessionState
from audioscrobbler.domain.errors import TransportError

logger = get_logger(__name__).bind(service="transport")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Errors worth retrying inside a single exchange
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


@define(slots=True)
class ScrobblerTransport:
    """Gated, cookie-aware HTTP exchange.

    Attributes:
        config: Active scrobbler configuration snapshot
        client: Shared async HTTP client (created on first use)
        last_connect_attempt: Monotonic timestamp of the last exchange start
    """

    config: ScrobblerConfig
    client: httpx.AsyncClient | None = field(default=None, repr=False)
    last_connect_attempt: float | None = field(default=None)
    _gate: asyncio.Lock = field(factory=asyncio.Lock, init=False, repr=False)

    USER_AGENT: ClassVar[str] = "audioscrobbler-engine/0.1"

    def _get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=self.config.request_timeout,
                headers={"User-Agent": self.USER_AGENT},
                follow_redirects=True,
            )
        return self.client

    async def _wait_for_gate(self) -> None:
        """Suspend until ``min_connect_wait`` has passed since the last exchange."""
        if self.last_connect_attempt is not None:
            next_connect = self.last_connect_attempt + self.config.min_connect_wait
            wait = next_connect - time.monotonic()
            if wait > 0:
                if self.config.debug_log:
                    logger.debug(f"Avoiding too fast connects, sleeping {wait:.2f}s")
                await asyncio.sleep(wait)
        self.last_connect_attempt = time.monotonic()

    def _on_backoff(self, details):
        request_url = details["args"][0] if details["args"] else "?"
        logger.warning(
            f"Retrying exchange (attempt {details['tries']})",
            url=request_url,
            retry_delay=f"{details['wait']:.2f}s",
        )

    def _log_cookies(self, session: SessionState) -> None:
        for index, cookie in enumerate(session.cookies, start=1):
            logger.debug(
                "Cookie {}: {} = {}",
                index,
                cookie.name,
                cookie.value,
                domain=cookie.domain,
                path=cookie.path,
                expires=cookie.expires,
                secure=cookie.secure,
            )

    async def exchange(
        self,
        session: SessionState,
        url: str,
        body: str | None = None,
        method: str | None = None,
    ) -> list[str]:
        """Execute a single request and return the body as lines.

        Args:
            session: Session whose cookie jar is sent and updated
            url: Absolute request URL (query string included for GETs)
            body: Form-encoded POST body; None for a GET
            method: Force "GET" even when a body is given

        Returns:
            Response body split into lines

        Raises:
            TransportError: Connection, stream, timeout or HTTP status failure
        """
        use_get = not body or (method or "").upper() == "GET"
        client = self._get_client()
        # The client shares the session jar, so response cookies land in it directly
        client.cookies = session.cookies

        @backoff.on_exception(
            backoff.expo,
            RETRYABLE_ERRORS,
            max_tries=max(1, self.config.transport_retry_count),
            jitter=backoff.full_jitter,
            on_backoff=self._on_backoff,
        )
        async def send(request_url: str) -> httpx.Response:
            async with self._gate:
                await self._wait_for_gate()
                if use_get:
                    if body:
                        separator = "&" if "?" in request_url else "?"
                        request_url = f"{request_url}{separator}{body}"
                    return await client.get(request_url)
                logger.info("Submitting data", url=request_url, size=len(body or ""))
                return await client.post(
                    request_url,
                    content=(body or "").encode("utf-8"),
                    headers={"Content-Type": FORM_CONTENT_TYPE},
                )

        try:
            response = await send(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code} from server", url=url
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}", url=url) from e

        if self.config.debug_log:
            logger.debug("Response received", url=url, status=response.status_code)
            self._log_cookies(session)

        return response.text.splitlines()

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
