"""HTTP probe transport used by the effective checks."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, Union

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy


DEFAULT_CONNECT_TIMEOUT_SECONDS = 3.0
DEFAULT_TOTAL_TIMEOUT_SECONDS = 5.0

HeaderInput = Union[Mapping[str, Union[str, Iterable[str]]], Iterable[tuple[str, str]], None]


class TransportError(Exception):
    """Raised when a probe request cannot be completed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


@dataclass(frozen=True)
class ProbeRequest:
    url: str
    method: str = "GET"


@dataclass(frozen=True)
class ProbeResponse:
    status: int
    headers: CIMultiDictProxy = field(default_factory=lambda: CIMultiDictProxy(CIMultiDict()))

    @classmethod
    def of(cls, status: int, headers: HeaderInput = None) -> "ProbeResponse":
        return cls(status=status, headers=build_headers(headers))


def build_headers(headers: HeaderInput) -> CIMultiDictProxy:
    """Build a case-insensitive multi-valued header view.

    Mapping values may be a single string or a list of strings; a list
    produces one entry per value, the way repeated ``Set-Cookie`` lines arrive.
    """

    collected: CIMultiDict = CIMultiDict()
    if headers is None:
        return CIMultiDictProxy(collected)
    items = headers.items() if isinstance(headers, Mapping) else headers
    for name, value in items:
        if isinstance(value, str):
            collected.add(str(name), value)
            continue
        for item in value:
            collected.add(str(name), str(item))
    return CIMultiDictProxy(collected)


class HttpProbe(Protocol):
    async def send(self, request: ProbeRequest) -> ProbeResponse: ...


class AiohttpProbe:
    """Single-shot aiohttp transport: no redirects followed, no retries."""

    def __init__(
        self,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        total_timeout: float = DEFAULT_TOTAL_TIMEOUT_SECONDS,
        verify_tls: bool = True,
    ) -> None:
        self.timeout = aiohttp.ClientTimeout(total=total_timeout, connect=connect_timeout)
        self.verify_tls = verify_tls

    async def send(self, request: ProbeRequest) -> ProbeResponse:
        request_kwargs: dict[str, object] = {"allow_redirects": False}
        if not self.verify_tls:
            request_kwargs["ssl"] = False
        try:
            # Fresh session per request keeps every observation independent.
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(request.method, request.url, **request_kwargs) as response:
                    return ProbeResponse(
                        status=response.status,
                        headers=CIMultiDictProxy(CIMultiDict(response.headers)),
                    )
        except asyncio.TimeoutError as exc:
            raise TransportError(request.url, "request timed out") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(request.url, str(exc) or exc.__class__.__name__) from exc


Responder = Union[ProbeResponse, BaseException, Callable[[ProbeRequest], ProbeResponse]]


class CannedProbe:
    """Probe answering from a fixed response, exception or callable.

    Every request is recorded so callers can assert how many network calls a
    check would have made.
    """

    def __init__(self, responder: Responder) -> None:
        self._responder = responder
        self.requests: list[ProbeRequest] = []

    async def send(self, request: ProbeRequest) -> ProbeResponse:
        self.requests.append(request)
        if isinstance(self._responder, BaseException):
            raise self._responder
        if isinstance(self._responder, ProbeResponse):
            return self._responder
        return self._responder(request)
