"""Flush cached pages after a content node changed."""

from __future__ import annotations

import logging

from varnishban.ban import AsyncBanService, BanService
from varnishban.base import ContentNode
from varnishban.config import VarnishSettings
from varnishban.tags import TagSetBuilder
from varnishban.types import DispatchReport

logger = logging.getLogger(__name__)


class _FlusherBase:
    def __init__(
        self,
        builder: TagSetBuilder | None,
        settings: VarnishSettings | None,
    ) -> None:
        self._builder = builder or TagSetBuilder()
        self._settings = settings or VarnishSettings()

    def is_ignored(self, node: ContentNode) -> bool:
        """Whether changes to ``node`` never trigger a flush."""
        return (
            node.node_type is not None
            and node.node_type in self._settings.ignored_node_types
        )

    def _tags(self, node: ContentNode) -> list[str] | None:
        if self.is_ignored(node):
            logger.debug(
                "Not flushing %s: node type %s is ignored",
                node.identifier,
                node.node_type,
            )
            return None
        # Sorted so repeated flushes send identical headers.
        return sorted(self._builder.tags_for_node(node))


class ContentCacheFlusher(_FlusherBase):
    """Bans every cached rendering depending on a node, installation-wide."""

    def __init__(
        self,
        ban_service: BanService,
        builder: TagSetBuilder | None = None,
        settings: VarnishSettings | None = None,
    ) -> None:
        super().__init__(builder, settings)
        self._ban_service = ban_service

    def flush_for_node(self, node: ContentNode) -> DispatchReport:
        tags = self._tags(node)
        if tags is None:
            return DispatchReport()
        logger.info("Flushing %d tag(s) for node %s", len(tags), node.identifier)
        return self._ban_service.ban_by_tags(tags)


class AsyncContentCacheFlusher(_FlusherBase):
    """Async variant of ContentCacheFlusher."""

    def __init__(
        self,
        ban_service: AsyncBanService,
        builder: TagSetBuilder | None = None,
        settings: VarnishSettings | None = None,
    ) -> None:
        super().__init__(builder, settings)
        self._ban_service = ban_service

    async def flush_for_node(self, node: ContentNode) -> DispatchReport:
        tags = self._tags(node)
        if tags is None:
            return DispatchReport()
        logger.info("Flushing %d tag(s) for node %s", len(tags), node.identifier)
        return await self._ban_service.ban_by_tags(tags)
