"""varnishban - Tag based cache invalidation for Varnish."""

from varnishban.admin import CacheAdmin, notice_for
from varnishban.ban import AsyncBanService, BanService
from varnishban.base import ContentNode, ReferenceIndex, SiteRepository
from varnishban.config import VarnishSettings
from varnishban.duration import parse_timeout
from varnishban.errors import (
    ConfigurationError,
    TransportError,
    UpstreamError,
    ValidationError,
    VarnishBanError,
)
from varnishban.flusher import AsyncContentCacheFlusher, ContentCacheFlusher
from varnishban.probe import AsyncCacheProber, CacheProber
from varnishban.tags import (
    MemoryReferenceIndex,
    TagSetBuilder,
    descendant_of_tag,
    encode_tags,
    node_tag,
    node_type_tag,
    parse_tag_string,
)

# Core types
from varnishban.types import (
    BanRequest,
    DispatchReport,
    Domain,
    Duration,
    HostOutcome,
    Notice,
    OutcomeKind,
    ProbeResult,
    Severity,
    Site,
    active_hostnames,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncBanService",
    "AsyncCacheProber",
    "AsyncContentCacheFlusher",
    "BanRequest",
    "BanService",
    "CacheAdmin",
    "CacheProber",
    "ConfigurationError",
    "ContentCacheFlusher",
    "ContentNode",
    "DispatchReport",
    "Domain",
    "Duration",
    "HostOutcome",
    "MemoryReferenceIndex",
    "Notice",
    "OutcomeKind",
    "ProbeResult",
    "ReferenceIndex",
    "Severity",
    "Site",
    "SiteRepository",
    "TagSetBuilder",
    "TransportError",
    "UpstreamError",
    "ValidationError",
    "VarnishBanError",
    "VarnishSettings",
    "active_hostnames",
    "descendant_of_tag",
    "encode_tags",
    "node_tag",
    "node_type_tag",
    "notice_for",
    "parse_tag_string",
    "parse_timeout",
]
