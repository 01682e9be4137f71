from __future__ import annotations
"""HTTP transport used to send signed GET requests."""
from dataclasses import dataclass, field
from collections import OrderedDict
import logging
import threading
from typing import Iterable, Mapping, Optional, Protocol

from botocore.awsrequest import AWSRequest
from botocore.exceptions import BotoCoreError
from botocore.httpsession import URLLib3Session

from .errors import AuthenticationError, TransportError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
DEFAULT_MAX_POOL_CONNECTIONS = 10
DEFAULT_MAX_CACHE_ENTRIES = 128

CacheKey = tuple[str, tuple[tuple[str, str], ...]]


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> Optional[str]:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None


class Transport(Protocol):
    def get(
        self,
        url: str,
        headers: Mapping[str, str],
        exclude_from_cache_key: Iterable[str] = (),
    ) -> HttpResponse: ...


def cache_key(url: str, headers: Mapping[str, str], exclude: Iterable[str] = ()) -> CacheKey:
    """Key a request by URL and the headers that do not vary per call."""

    excluded = {name.lower() for name in exclude}
    kept = sorted((name.lower(), value) for name, value in headers.items() if name.lower() not in excluded)
    return url, tuple(kept)


def raise_for_status(response: HttpResponse, url: str) -> None:
    if response.status < 300:
        return
    if response.status in (401, 403):
        raise AuthenticationError(f"S3 rejected the request to {url} (HTTP {response.status})")
    raise TransportError(f"GET {url} failed with HTTP {response.status}", status=response.status, url=url)


class HttpTransport:
    """Sends GET requests through botocore's urllib3 session.

    With ``cache=True`` successful responses are kept in memory, keyed by
    :func:`cache_key` so that time-variant headers do not defeat the cache.
    At most ``max_cache_entries`` responses are kept; the least recently
    used one is evicted first. :meth:`clear_cache` drops them all.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS,
        cache: bool = False,
        max_cache_entries: int = DEFAULT_MAX_CACHE_ENTRIES,
        session: URLLib3Session | None = None,
    ):
        self._session = session or URLLib3Session(
            timeout=timeout,
            max_pool_connections=max_pool_connections,
        )
        self._cache_enabled = cache
        self._max_cache_entries = max(1, max_cache_entries)
        self._cache: OrderedDict[CacheKey, HttpResponse] = OrderedDict()
        self._lock = threading.Lock()

    def get(
        self,
        url: str,
        headers: Mapping[str, str],
        exclude_from_cache_key: Iterable[str] = (),
    ) -> HttpResponse:
        """Send a GET request.

        Raises:
            AuthenticationError: when S3 answers 401 or 403.
            TransportError: on connection failures and other non-success statuses.
        """
        key = cache_key(url, headers, exclude_from_cache_key)
        if self._cache_enabled:
            with self._lock:
                cached = self._cache.get(key)
                if cached is not None:
                    self._cache.move_to_end(key)
            if cached is not None:
                LOGGER.debug("Cache hit for %s", url)
                return cached

        request = AWSRequest(method="GET", url=url, headers=dict(headers))
        try:
            raw = self._session.send(request.prepare())
        except BotoCoreError as exc:
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc

        response = HttpResponse(
            status=raw.status_code,
            body=raw.content,
            headers=dict(raw.headers.items()),
        )
        LOGGER.debug("GET %s -> %d (%d bytes)", url, response.status, len(response.body))
        raise_for_status(response, url)

        if self._cache_enabled:
            with self._lock:
                self._cache[key] = response
                self._cache.move_to_end(key)
                while len(self._cache) > self._max_cache_entries:
                    self._cache.popitem(last=False)
        return response

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        self._session.close()
