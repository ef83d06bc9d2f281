"""Settings for talking to the cache layer."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from varnishban.duration import parse_timeout
from varnishban.errors import ConfigurationError
from varnishban.types import Duration


@dataclass(frozen=True, slots=True)
class VarnishSettings:
    """Cache layer settings, validated once at construction.

    Example:
        settings = VarnishSettings(
            varnish_url="http://varnish.internal:6081/",
            reverse_lookup_port=8080,
            timeout="3s",
        )
    """

    varnish_url: str = "http://127.0.0.1/"
    reverse_lookup_port: int | None = None
    timeout: Duration = "5s"
    tag_header: str = "X-Cache-Tags"
    content_type_header: str = "X-Content-Type"
    debug_header: str = "X-Cache-Debug"
    tag_delimiter: str = "|"
    ignored_node_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        try:
            url = httpx.URL(self.varnish_url)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConfigurationError(f"Invalid varnish_url: {self.varnish_url!r}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(f"Invalid varnish_url: {self.varnish_url!r}")

        if self.reverse_lookup_port is not None and (
            isinstance(self.reverse_lookup_port, bool)
            or not isinstance(self.reverse_lookup_port, int)
            or not 0 < self.reverse_lookup_port < 65536
        ):
            raise ConfigurationError(
                f"reverse_lookup_port must be between 1 and 65535, "
                f"got {self.reverse_lookup_port!r}"
            )

        try:
            parse_timeout(self.timeout)
        except (ValueError, AttributeError) as e:
            raise ConfigurationError(str(e)) from e

        for name in ("tag_header", "content_type_header", "debug_header"):
            if not getattr(self, name).strip():
                raise ConfigurationError(f"{name} must not be empty")
        if len(self.tag_delimiter) != 1 or self.tag_delimiter.isspace():
            raise ConfigurationError("tag_delimiter must be a single visible character")
        if isinstance(self.ignored_node_types, str):
            raise ConfigurationError("ignored_node_types must be a sequence of names")

    @property
    def timeout_seconds(self) -> float:
        return parse_timeout(self.timeout)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> VarnishSettings:
        """Build settings from a parsed configuration mapping."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")

        kwargs = dict(values)
        if "ignored_node_types" in kwargs:
            ignored = kwargs["ignored_node_types"]
            if isinstance(ignored, str):
                raise ConfigurationError("ignored_node_types must be a list of names")
            kwargs["ignored_node_types"] = tuple(ignored or ())
        return cls(**kwargs)
