"""Operator actions of the cache administration module.

Each action validates operator input, dispatches bans and turns the
resulting report into a single Notice for display.
"""

from __future__ import annotations

import logging
from types import TracebackType

from varnishban.ban import BanService
from varnishban.base import ContentNode, ReferenceIndex, SiteRepository
from varnishban.config import VarnishSettings
from varnishban.flusher import ContentCacheFlusher
from varnishban.probe import CacheProber
from varnishban.tags import TagSetBuilder, parse_tag_string
from varnishban.types import (
    DispatchReport,
    Notice,
    ProbeResult,
    Severity,
    Site,
    active_hostnames,
)

logger = logging.getLogger(__name__)


def _scope(site: Site | None) -> str:
    return f"site {site.name}" if site is not None else "installation"


def _hostnames(site: Site | None) -> list[str] | None:
    if site is None or not site.has_active_domains:
        return None
    return active_hostnames(site)


def notice_for(message: str, scope: str, report: DispatchReport) -> Notice:
    """Aggregate a dispatch report into one operator notice."""
    if report.ok:
        return Notice(message, Severity.OK, report)

    details = ", ".join(
        f"{outcome.target}: {outcome.error}" for outcome in report.failed
    )
    if report.partial:
        return Notice(f"{message} (failed for {details})", Severity.WARNING, report)
    return Notice(
        f"Varnish cache could not be cleared for {scope} ({details})",
        Severity.ERROR,
        report,
    )


class CacheAdmin:
    """Backend for the cache administration module."""

    def __init__(
        self,
        sites: SiteRepository,
        settings: VarnishSettings | None = None,
        *,
        references: ReferenceIndex | None = None,
        ban_service: BanService | None = None,
        prober: CacheProber | None = None,
    ) -> None:
        self._sites = sites
        self._settings = settings or VarnishSettings()
        self._owns_ban_service = ban_service is None
        self._owns_prober = prober is None
        self._ban_service = ban_service or BanService(self._settings)
        self._prober = prober or CacheProber(self._settings)
        self._flusher = ContentCacheFlusher(
            self._ban_service, TagSetBuilder(references), self._settings
        )

    def active_sites(self) -> list[Site]:
        """Sites currently online, for the site selector."""
        return self._sites.find_online()

    def purge_cache(self, node: ContentNode) -> Notice:
        """Clear every cached page depending on ``node``."""
        if self._flusher.is_ignored(node):
            return Notice(
                f'Node "{node.identifier}" has an ignored node type, nothing cleared'
            )
        report = self._flusher.flush_for_node(node)
        return notice_for(
            f'Varnish cache cleared for node "{node.identifier}"',
            "installation",
            report,
        )

    def purge_cache_by_tags(self, tags: str, site: Site | None = None) -> Notice:
        """Clear pages carrying any of the comma separated ``tags``.

        Raises:
            ValidationError: No tag left after trimming the input.
        """
        parsed = parse_tag_string(tags)
        report = self._ban_service.ban_by_tags(parsed, _hostnames(site))
        quoted = '", "'.join(parsed)
        return notice_for(
            f'Varnish cache cleared for tags "{quoted}" for {_scope(site)}',
            _scope(site),
            report,
        )

    def purge_all_varnish_cache(
        self,
        site: Site | None = None,
        content_type: str | None = None,
    ) -> Notice:
        """Clear everything for a site or the installation."""
        content_type = content_type.strip() if content_type else None
        report = self._ban_service.ban_all(_hostnames(site), content_type or None)
        suffix = f' with content type "{content_type}"' if content_type else ""
        return notice_for(
            f"All varnish cache cleared for {_scope(site)}{suffix}",
            _scope(site),
            report,
        )

    def check_url(self, url: str) -> ProbeResult:
        """Show how the cache layer answers for ``url``."""
        return self._prober.probe(url)

    def close(self) -> None:
        """Close the services this admin created."""
        if self._owns_ban_service:
            self._ban_service.close()
        if self._owns_prober:
            self._prober.close()

    def __enter__(self) -> CacheAdmin:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
