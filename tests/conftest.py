"""Shared pytest fixtures."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from varnishban import BanService, CacheProber, Domain, Site, VarnishSettings

VARNISH_URL = "http://varnish.test/"


@dataclass
class Node:
    """Minimal content node for tests."""

    identifier: str
    parent: Node | None = None
    node_type: str | None = None


@pytest.fixture
def settings() -> VarnishSettings:
    """Settings pointing at a mocked cache layer."""
    return VarnishSettings(varnish_url=VARNISH_URL, timeout="2s")


@pytest.fixture
def ban_service(settings: VarnishSettings) -> BanService:
    """Create a BanService for each test."""
    return BanService(settings)


@pytest.fixture
def prober(settings: VarnishSettings) -> CacheProber:
    """Create a CacheProber for each test."""
    return CacheProber(settings)


@pytest.fixture
def node_tree() -> dict[str, Node]:
    """A site root with a page and a text element below it."""
    root = Node("site-root", node_type="Neos.Neos:Document")
    page = Node("page-1", parent=root, node_type="Neos.Neos:Page")
    text = Node("text-1", parent=page, node_type="Neos.NodeTypes:Text")
    return {"root": root, "page": page, "text": text}


@pytest.fixture
def site() -> Site:
    """A site with two active domains and one inactive."""
    return Site(
        name="Example",
        node_name="example",
        domains=(
            Domain("a.example.com"),
            Domain("b.example.com"),
            Domain("old.example.com", active=False),
        ),
    )


@pytest.fixture
def make_node() -> type[Node]:
    """Node factory for tests building their own trees."""
    return Node
