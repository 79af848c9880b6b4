import asyncio
import logging
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx

from .config import settings

logger = logging.getLogger(__name__)

ACCEPT = "text/html,application/json;q=0.9,*/*;q=0.8"


@dataclass(frozen=True)
class ProbeAttempt:
    ok: bool
    elapsed_ms: int


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))


def host_port(url: str) -> Optional[tuple[str, int]]:
    """Host and port for a raw connection; 80 for http, 443 otherwise."""
    try:
        u = urlsplit(url)
        port = u.port
    except ValueError:
        return None
    if not u.hostname:
        return None
    if port is None:
        port = 80 if u.scheme.lower() == "http" else 443
    return u.hostname, port


class HttpProber:
    """Single-shot reachability probes.

    Any HTTP status below 500 counts as reachable: redirects, 401/403 and 404
    mean the service answered, just gated. Only 5xx or a transport failure
    is a failed attempt.
    """

    def __init__(self, user_agent: str = settings.UA, client: Optional[httpx.AsyncClient] = None):
        self.user_agent = user_agent
        self._client = client

    async def _get(self, client: httpx.AsyncClient, url: str, timeout_s: float) -> int:
        r = await client.get(
            url,
            headers={"User-Agent": self.user_agent, "Accept": ACCEPT},
            follow_redirects=True,
            timeout=httpx.Timeout(timeout_s),
        )
        return r.status_code

    async def _fetch_status(self, url: str, timeout_s: float) -> int:
        if self._client is not None:
            return await self._get(self._client, url, timeout_s)
        async with httpx.AsyncClient() as client:
            return await self._get(client, url, timeout_s)

    async def probe_once(self, url: str, timeout_ms: int) -> ProbeAttempt:
        timeout_s = timeout_ms / 1000
        started = time.monotonic()
        # bad host labels surface as UnicodeError (a ValueError) from the idna codec
        try:
            code = await asyncio.wait_for(self._fetch_status(url, timeout_s), timeout_s)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError, asyncio.TimeoutError) as e:
            logger.debug("GET %s failed: %s: %s", url, type(e).__name__, e)
            return ProbeAttempt(False, _elapsed_ms(started))
        return ProbeAttempt(code < 500, _elapsed_ms(started))

    async def tcp_probe(self, url: str, timeout_ms: int) -> ProbeAttempt:
        started = time.monotonic()
        addr = host_port(url)
        if addr is None:
            return ProbeAttempt(False, 0)
        host, port = addr
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout_ms / 1000)
        except (OSError, ValueError, asyncio.TimeoutError) as e:
            logger.debug("TCP %s:%s failed: %s: %s", host, port, type(e).__name__, e)
            return ProbeAttempt(False, _elapsed_ms(started))
        elapsed = _elapsed_ms(started)
        writer.close()
        with suppress(OSError, asyncio.TimeoutError):
            await asyncio.wait_for(writer.wait_closed(), timeout_ms / 1000)
        return ProbeAttempt(True, elapsed)
