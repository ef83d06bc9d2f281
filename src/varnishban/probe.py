"""Cache debug prober.

Fetches a URL with the debug header set so the cache layer reports how it
handled the request. Certificate verification is disabled for the prober's
own client only: it usually talks to an internal reverse-lookup port with a
self-signed certificate. Ban clients are never affected.
"""

from __future__ import annotations

import logging

import httpx

from varnishban.config import VarnishSettings
from varnishban.errors import TransportError, ValidationError
from varnishban.types import ProbeResult

logger = logging.getLogger(__name__)


def _last_values(headers: httpx.Headers) -> dict[str, str]:
    """Header name to last value; repeated headers keep the final occurrence."""
    names: dict[str, str] = {}
    values: dict[str, str] = {}
    for raw_name, raw_value in headers.raw:
        name = raw_name.decode(headers.encoding)
        key = name.lower()
        names[key] = name
        values[key] = raw_value.decode(headers.encoding)
    return {names[key]: values[key] for key in values}


def _validate_port(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ValidationError(f"Port must be between 1 and 65535, got {port!r}")
    return port


def build_probe_url(url: str, reverse_lookup_port: int | None = None) -> httpx.URL:
    """Parse and validate ``url``, rewriting its port when one is given."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise ValidationError(f"Malformed URL: {url!r}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValidationError(f"URL must be absolute http(s): {url!r}")
    if reverse_lookup_port is not None:
        parsed = parsed.copy_with(port=_validate_port(reverse_lookup_port))
    return parsed


class _ProberBase:
    def __init__(self, settings: VarnishSettings | None) -> None:
        self._settings = settings or VarnishSettings()

    def _target(self, url: str, reverse_lookup_port: int | None) -> httpx.URL:
        if reverse_lookup_port is None:
            reverse_lookup_port = self._settings.reverse_lookup_port
        return build_probe_url(url, reverse_lookup_port)

    def _client_options(self) -> dict[str, object]:
        return {
            "timeout": self._settings.timeout_seconds,
            "verify": False,
            "follow_redirects": False,
            "headers": {self._settings.debug_header: "1"},
        }

    def _result(self, url: str, response: httpx.Response) -> ProbeResult:
        logger.info("Probed %s: HTTP %d", url, response.status_code)
        return ProbeResult(
            status_code=response.status_code,
            host=httpx.URL(url).host,
            url=url,
            headers=_last_values(response.headers),
        )

    def _failure(self, url: str, target: httpx.URL, exc: httpx.TransportError) -> TransportError:
        message = str(exc) or type(exc).__name__
        logger.warning("Probe of %s failed: %s", target, message)
        return TransportError(f"Probe of {url} failed: {message}", host=target.host)


class CacheProber(_ProberBase):
    """Sync cache debug prober."""

    def __init__(
        self,
        settings: VarnishSettings | None = None,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(settings)
        self._owns_client = client is None
        self._client = client or httpx.Client(**self._client_options())  # type: ignore[arg-type]

    def probe(self, url: str, reverse_lookup_port: int | None = None) -> ProbeResult:
        """GET ``url`` with the debug header and return the cache's answer.

        Args:
            url: Public URL to check.
            reverse_lookup_port: Port to talk to the cache layer directly.
                Defaults to ``settings.reverse_lookup_port``.

        Raises:
            ValidationError: Malformed URL or port.
            TransportError: The cache layer could not be reached.
        """
        target = self._target(url, reverse_lookup_port)
        try:
            response = self._client.get(
                target, headers={self._settings.debug_header: "1"}
            )
        except httpx.TransportError as e:
            raise self._failure(url, target, e) from e
        return self._result(url, response)

    def close(self) -> None:
        """Close the HTTP client if this prober created it."""
        if self._owns_client:
            self._client.close()


class AsyncCacheProber(_ProberBase):
    """Async cache debug prober."""

    def __init__(
        self,
        settings: VarnishSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(settings)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(**self._client_options())  # type: ignore[arg-type]

    async def probe(self, url: str, reverse_lookup_port: int | None = None) -> ProbeResult:
        """GET ``url`` with the debug header and return the cache's answer."""
        target = self._target(url, reverse_lookup_port)
        try:
            response = await self._client.get(
                target, headers={self._settings.debug_header: "1"}
            )
        except httpx.TransportError as e:
            raise self._failure(url, target, e) from e
        return self._result(url, response)

    async def close(self) -> None:
        """Close the HTTP client if this prober created it."""
        if self._owns_client:
            await self._client.aclose()
