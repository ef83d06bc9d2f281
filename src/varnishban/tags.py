"""Cache tag derivation, parsing and header encoding."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from varnishban.base import ContentNode, ReferenceIndex
from varnishban.errors import ValidationError

NODE_PREFIX = "Node_"
DESCENDANT_OF_PREFIX = "DescendantOf_"
NODE_TYPE_PREFIX = "NodeType_"


def node_tag(identifier: str) -> str:
    """Tag carried by every rendering of the node itself."""
    return f"{NODE_PREFIX}{identifier}"


def descendant_of_tag(identifier: str) -> str:
    """Tag carried by renderings that embed descendants of the node."""
    return f"{DESCENDANT_OF_PREFIX}{identifier}"


def node_type_tag(node_type: str) -> str:
    """Tag carried by renderings that list nodes of a type."""
    return f"{NODE_TYPE_PREFIX}{node_type}"


def normalize_tags(tags: Iterable[str]) -> tuple[str, ...]:
    """Strip, drop empty and deduplicate tags keeping first occurrence."""
    stripped = (tag.strip() for tag in tags)
    return tuple(dict.fromkeys(t for t in stripped if t))


def parse_tag_string(value: str) -> tuple[str, ...]:
    """Split operator input like ``"news, events"`` into tags.

    Raises ValidationError when nothing is left after trimming, so an empty
    form submission never reaches the dispatcher.
    """
    tags = normalize_tags(value.split(","))
    if not tags:
        raise ValidationError("At least one cache tag is required")
    return tags


def encode_tags(tags: Iterable[str], delimiter: str = "|") -> str:
    """Join tags into a single header value.

    Tags containing the delimiter, line breaks or characters outside
    printable ASCII are rejected.
    """
    encoded = []
    for tag in tags:
        if delimiter in tag:
            raise ValidationError(f"Tag {tag!r} contains the delimiter {delimiter!r}")
        if "\r" in tag or "\n" in tag:
            raise ValidationError(f"Tag {tag!r} contains a line break")
        if not tag.isascii() or not tag.isprintable():
            raise ValidationError(f"Tag {tag!r} must be printable ASCII")
        encoded.append(tag)
    if not encoded:
        raise ValidationError("Cannot encode an empty tag set")
    return delimiter.join(encoded)


class MemoryReferenceIndex:
    """Reference index backed by a plain mapping of target to referrers."""

    def __init__(self, references: Mapping[str, Iterable[str]] | None = None) -> None:
        self._references: dict[str, tuple[str, ...]] = {
            target: tuple(referrers)
            for target, referrers in (references or {}).items()
        }

    def referencing(self, identifier: str) -> Iterable[str]:
        """Identifiers of nodes holding a reference to ``identifier``."""
        return self._references.get(identifier, ())


class TagSetBuilder:
    """Derives every cache tag that depends on a content node."""

    def __init__(self, references: ReferenceIndex | None = None) -> None:
        self._references = references

    def ancestors(self, node: ContentNode) -> list[ContentNode]:
        """Parents of ``node`` up to the site root, nearest first."""
        result: list[ContentNode] = []
        seen = {node.identifier}
        current = node.parent
        while current is not None and current.identifier not in seen:
            seen.add(current.identifier)
            result.append(current)
            current = current.parent
        return result

    def tags_for_node(self, node: ContentNode) -> frozenset[str]:
        """Tags for the node, its ancestors and every node referencing it."""
        tags = {node_tag(node.identifier)}

        if node.node_type:
            tags.add(node_type_tag(node.node_type))

        for ancestor in self.ancestors(node):
            tags.add(node_tag(ancestor.identifier))
            tags.add(descendant_of_tag(ancestor.identifier))

        if self._references is not None:
            for referrer in self._references.referencing(node.identifier):
                if referrer:
                    tags.add(node_tag(referrer))

        return frozenset(tags)
