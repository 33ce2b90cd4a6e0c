"""Plain-text HTTP transport to the peer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Protocol
from urllib.parse import quote

import aiohttp
from yarl import URL

from pydoorlink._constants import PING_PATH
from pydoorlink._redact import redact_query
from pydoorlink.config import DoorLinkConfig
from pydoorlink.models.connectivity import ProbeResult, TransportFailure

_logger = logging.getLogger(__name__)

_HEADERS = {"Accept": "text/plain"}

# Characters JavaScript's encodeURIComponent leaves alone on top of the
# unreserved set quote() always keeps.
_QUERY_SAFE = "!*'()"


@dataclass(frozen=True, slots=True)
class SendResult:
    """Outcome of a single request.

    ``body`` holds whatever was received, also on failure: a peer that
    drops the connection mid-response still leaves its partial answer here.
    """

    ok: bool
    body: str = ""
    status: int | None = None
    failure: TransportFailure | None = None
    detail: str = ""


class Transport(Protocol):
    """Structural transport interface used by the controllers.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def probe(self, address: str | IPv4Address, *, timeout: float | None = None) -> ProbeResult:
        ...

    async def send(
        self,
        address: str | IPv4Address,
        path: str,
        query: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> SendResult:
        ...


def encode_query(query: Mapping[str, str]) -> str:
    return "&".join(f"{quote(key, safe=_QUERY_SAFE)}={quote(value, safe=_QUERY_SAFE)}" for key, value in query.items())


def build_url(address: str | IPv4Address, path: str, query: Mapping[str, str] | None = None) -> URL:
    url = f"http://{address}/{path.lstrip('/')}"
    if query:
        url = f"{url}?{encode_query(query)}"
    return URL(url, encoded=True)


class HttpTransport:
    """GET-only transport with a hard deadline on every call.

    ``send`` never retries; retry policy belongs to the caller.
    """

    def __init__(self, config: DoorLinkConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def probe(self, address: str | IPv4Address, *, timeout: float | None = None) -> ProbeResult:
        """``REACHABLE`` on any 2xx from ``/ping``, ``UNREACHABLE`` otherwise."""
        result = await self.send(
            address,
            PING_PATH,
            timeout=timeout if timeout is not None else self._config.probe_timeout,
        )
        return ProbeResult.REACHABLE if result.ok else ProbeResult.UNREACHABLE

    async def send(
        self,
        address: str | IPv4Address,
        path: str,
        query: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> SendResult:
        effective_timeout = timeout if timeout is not None else self._config.command_timeout
        url = build_url(address, path, query)

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("GET %s", build_url(address, path, redact_query(query)))

        chunks: list[bytes] = []
        status: int | None = None
        try:
            async with asyncio.timeout(effective_timeout):
                async with self._http.get(url, headers=_HEADERS) as resp:
                    status = resp.status
                    async for chunk in resp.content.iter_any():
                        chunks.append(chunk)
        except TimeoutError:
            _logger.debug("GET /%s to %s timed out after %.1fs", path, address, effective_timeout)
            return SendResult(
                ok=False,
                body=_decode(chunks),
                status=status,
                failure=TransportFailure.TIMEOUT,
                detail=f"no answer within {effective_timeout}s",
            )
        except aiohttp.ClientError as exc:
            _logger.debug("GET /%s to %s failed: %s", path, address, exc)
            return SendResult(
                ok=False,
                body=_decode(chunks),
                status=status,
                failure=TransportFailure.NETWORK,
                detail=str(exc) or type(exc).__name__,
            )

        body = _decode(chunks)
        if status is None or not 200 <= status < 300:
            return SendResult(
                ok=False,
                body=body,
                status=status,
                failure=TransportFailure.HTTP_STATUS,
                detail=f"HTTP {status}",
            )
        return SendResult(ok=True, body=body, status=status)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")
