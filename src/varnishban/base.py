"""Protocols for collaborators supplied by the host CMS."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from varnishban.types import Site


@runtime_checkable
class ContentNode(Protocol):
    """A content node as seen by the tag builder."""

    @property
    def identifier(self) -> str:
        """Stable node identifier."""
        ...

    @property
    def parent(self) -> ContentNode | None:
        """Parent node, None for the site root."""
        ...

    @property
    def node_type(self) -> str | None:
        """Node type name, if known."""
        ...


@runtime_checkable
class ReferenceIndex(Protocol):
    """Answers which nodes reference a given node."""

    def referencing(self, identifier: str) -> Iterable[str]:
        """Identifiers of nodes holding a reference to ``identifier``."""
        ...


@runtime_checkable
class SiteRepository(Protocol):
    """Read access to the host's sites."""

    def find_online(self) -> list[Site]:
        """All sites currently online."""
        ...
