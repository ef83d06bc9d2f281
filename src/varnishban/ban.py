"""Ban dispatchers: tag bans and purge-all bans against the cache layer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

import httpx

from varnishban.config import VarnishSettings
from varnishban.errors import ValidationError
from varnishban.tags import encode_tags, normalize_tags
from varnishban.types import (
    BanRequest,
    DispatchReport,
    HostOutcome,
    OutcomeKind,
    normalize_hostnames,
)

logger = logging.getLogger(__name__)

BAN_METHOD = "BAN"


def _validated_hostnames(hostnames: Iterable[str] | None) -> list[str]:
    if isinstance(hostnames, str):
        raise ValidationError("hostnames must be a collection, not a string")
    result = normalize_hostnames(hostnames)
    for hostname in result:
        if not hostname.isascii() or any(c.isspace() for c in hostname):
            raise ValidationError(f"Invalid hostname: {hostname!r}")
    return result


def tag_ban_requests(
    tags: Iterable[str],
    hostnames: Iterable[str] | None = None,
) -> list[BanRequest]:
    """One request per hostname, or a single unscoped one without hostnames.

    Returns an empty list when no tags remain after normalization.
    """
    if isinstance(tags, str):
        raise ValidationError(
            "tags must be a collection; use parse_tag_string for operator input"
        )
    normalized = normalize_tags(tags)
    if not normalized:
        return []
    hosts = _validated_hostnames(hostnames)
    if not hosts:
        return [BanRequest(tags=normalized)]
    return [BanRequest(host=host, tags=normalized) for host in hosts]


def purge_all_requests(
    hostnames: Iterable[str] | None = None,
    content_type: str | None = None,
) -> list[BanRequest]:
    """Purge-all requests following the same per-host fan-out."""
    if content_type is not None:
        content_type = content_type.strip() or None
    if content_type is not None and (
        not content_type.isascii() or not content_type.isprintable()
    ):
        raise ValidationError(f"Invalid content type: {content_type!r}")
    hosts = _validated_hostnames(hostnames)
    if not hosts:
        return [BanRequest(content_type=content_type)]
    return [BanRequest(host=host, content_type=content_type) for host in hosts]


class _BanRequestBuilder:
    """Shared header construction and response interpretation."""

    def __init__(self, settings: VarnishSettings) -> None:
        self._settings = settings

    def _headers(self, request: BanRequest) -> dict[str, str]:
        headers: dict[str, str] = {}
        if request.host is not None:
            headers["Host"] = request.host
        if request.tags is not None:
            headers[self._settings.tag_header] = encode_tags(
                request.tags, self._settings.tag_delimiter
            )
        if request.content_type is not None:
            headers[self._settings.content_type_header] = request.content_type
        return headers

    def _validate(self, requests: list[BanRequest]) -> None:
        # Encoding errors must surface before the first request is sent.
        for request in requests:
            self._headers(request)

    def _outcome(self, request: BanRequest, response: httpx.Response) -> HostOutcome:
        if response.is_success:
            logger.debug(
                "Ban accepted for %s (HTTP %d)",
                request.host or "installation",
                response.status_code,
            )
            return HostOutcome(request.host, OutcomeKind.SUCCESS, response.status_code)
        logger.warning(
            "Ban rejected for %s: HTTP %d",
            request.host or "installation",
            response.status_code,
        )
        return HostOutcome(
            request.host,
            OutcomeKind.UPSTREAM_ERROR,
            response.status_code,
            f"HTTP {response.status_code}",
        )

    def _transport_failure(self, request: BanRequest, exc: httpx.TransportError) -> HostOutcome:
        message = str(exc) or type(exc).__name__
        logger.warning("Ban failed for %s: %s", request.host or "installation", message)
        return HostOutcome(request.host, OutcomeKind.TRANSPORT_ERROR, error=message)

    def _report(self, outcomes: list[HostOutcome], kind: str) -> DispatchReport:
        report = DispatchReport(tuple(outcomes))
        logger.info(
            "%s: %d request(s), %d failed",
            kind,
            report.request_count,
            len(report.failed),
        )
        return report


class BanService(_BanRequestBuilder):
    """Sync ban dispatcher. Hosts are banned one after another."""

    def __init__(
        self,
        settings: VarnishSettings | None = None,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(settings or VarnishSettings())
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self._settings.timeout_seconds,
            follow_redirects=False,
        )

    def _send(self, request: BanRequest) -> HostOutcome:
        try:
            response = self._client.request(
                BAN_METHOD,
                self._settings.varnish_url,
                headers=self._headers(request),
            )
        except httpx.TransportError as e:
            return self._transport_failure(request, e)
        return self._outcome(request, response)

    def dispatch(self, requests: list[BanRequest], kind: str = "Ban") -> DispatchReport:
        """Send every request; a failing host never stops the others."""
        self._validate(requests)
        return self._report([self._send(request) for request in requests], kind)

    def ban_by_tags(
        self,
        tags: Iterable[str],
        hostnames: Iterable[str] | None = None,
    ) -> DispatchReport:
        """Ban everything tagged with any of ``tags``.

        An empty tag set is a no-op, never a purge-all.
        """
        requests = tag_ban_requests(tags, hostnames)
        if not requests:
            logger.warning("Ignoring tag ban with an empty tag set")
            return DispatchReport()
        return self.dispatch(requests, "Tag ban")

    def ban_all(
        self,
        hostnames: Iterable[str] | None = None,
        content_type: str | None = None,
    ) -> DispatchReport:
        """Ban everything, optionally limited to a content type."""
        return self.dispatch(purge_all_requests(hostnames, content_type), "Purge all")

    def close(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._owns_client:
            self._client.close()


class AsyncBanService(_BanRequestBuilder):
    """Async ban dispatcher. Hosts are banned concurrently."""

    def __init__(
        self,
        settings: VarnishSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(settings or VarnishSettings())
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            follow_redirects=False,
        )

    async def _send(self, request: BanRequest) -> HostOutcome:
        try:
            response = await self._client.request(
                BAN_METHOD,
                self._settings.varnish_url,
                headers=self._headers(request),
            )
        except httpx.TransportError as e:
            return self._transport_failure(request, e)
        return self._outcome(request, response)

    async def dispatch(self, requests: list[BanRequest], kind: str = "Ban") -> DispatchReport:
        """Send every request concurrently; a failing host never stops the others."""
        self._validate(requests)
        outcomes = await asyncio.gather(*(self._send(request) for request in requests))
        return self._report(list(outcomes), kind)

    async def ban_by_tags(
        self,
        tags: Iterable[str],
        hostnames: Iterable[str] | None = None,
    ) -> DispatchReport:
        """Ban everything tagged with any of ``tags``.

        An empty tag set is a no-op, never a purge-all.
        """
        requests = tag_ban_requests(tags, hostnames)
        if not requests:
            logger.warning("Ignoring tag ban with an empty tag set")
            return DispatchReport()
        return await self.dispatch(requests, "Tag ban")

    async def ban_all(
        self,
        hostnames: Iterable[str] | None = None,
        content_type: str | None = None,
    ) -> DispatchReport:
        """Ban everything, optionally limited to a content type."""
        return await self.dispatch(purge_all_requests(hostnames, content_type), "Purge all")

    async def close(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._owns_client:
            await self._client.aclose()
