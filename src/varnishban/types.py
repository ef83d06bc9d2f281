"""Core types for varnishban."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from varnishban.errors import TransportError, UpstreamError, ValidationError

# Duration type alias
Duration = str | int | float  # "5s", "500ms", "1m" or seconds


@dataclass(frozen=True, slots=True)
class Domain:
    """A hostname a site is served under."""

    hostname: str
    active: bool = True


@dataclass(frozen=True, slots=True)
class Site:
    """A web property owned by the host CMS."""

    name: str
    node_name: str
    domains: tuple[Domain, ...] = ()

    @property
    def has_active_domains(self) -> bool:
        """Whether at least one domain is active."""
        return any(domain.active for domain in self.domains)


def active_hostnames(site: Site) -> list[str]:
    """Hostnames of the site's active domains, in declaration order."""
    return normalize_hostnames(d.hostname for d in site.domains if d.active)


def normalize_hostnames(hostnames: Iterable[str] | None) -> list[str]:
    """Strip, drop empty and deduplicate hostnames keeping first occurrence."""
    if hostnames is None:
        return []
    stripped = (hostname.strip() for hostname in hostnames)
    return list(dict.fromkeys(h for h in stripped if h))


@dataclass(frozen=True, slots=True)
class BanRequest:
    """A single ban against the cache layer.

    ``host=None`` bans installation-wide. ``tags=None`` bans everything
    matching the remaining criteria; an empty tag tuple is rejected so that
    an empty derived tag set can never turn into a purge-all.
    """

    host: str | None = None
    tags: tuple[str, ...] | None = None
    content_type: str | None = None

    def __post_init__(self) -> None:
        if self.tags is not None and not self.tags:
            raise ValidationError("BanRequest tags must be None or non-empty")
        if self.tags is not None and self.content_type is not None:
            raise ValidationError("content_type only applies to purge-all bans")

    @property
    def is_purge_all(self) -> bool:
        return self.tags is None


class OutcomeKind(Enum):
    """How a single ban request ended."""

    SUCCESS = "success"
    UPSTREAM_ERROR = "upstream_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True, slots=True)
class HostOutcome:
    """Result of one ban request."""

    host: str | None
    kind: OutcomeKind
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def target(self) -> str:
        """Display name for the target, ``installation`` when unscoped."""
        return self.host or "installation"


@dataclass(frozen=True, slots=True)
class DispatchReport:
    """Aggregate of all per-host outcomes for one dispatch call."""

    outcomes: tuple[HostOutcome, ...] = ()

    @property
    def request_count(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> tuple[HostOutcome, ...]:
        return tuple(o for o in self.outcomes if o.ok)

    @property
    def failed(self) -> tuple[HostOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)

    @property
    def ok(self) -> bool:
        """True when every request succeeded (vacuously for no requests)."""
        return not self.failed

    @property
    def partial(self) -> bool:
        """True when some, but not all, requests failed."""
        return bool(self.failed) and bool(self.succeeded)

    def raise_for_failures(self) -> None:
        """Raise if any request failed; for callers wanting hard errors."""
        failed = self.failed
        if not failed:
            return
        targets = ", ".join(o.target for o in failed)
        if any(o.kind is OutcomeKind.UPSTREAM_ERROR for o in failed):
            raise UpstreamError(f"Ban failed for {targets}", failed)
        raise TransportError(
            f"Cache layer unreachable for {targets}: {failed[0].error}",
            host=failed[0].host,
        )


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Diagnostic response of the cache layer for a URL."""

    status_code: int
    host: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def is_cache_hit(self) -> bool | None:
        """Whether ``X-Cache`` reports a hit; None if the header is missing."""
        value = self.header("X-Cache")
        if value is None:
            return None
        return "HIT" in value.upper()


class Severity(Enum):
    """Severity of an operator-facing notice."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    """Operator-facing message produced by an admin action."""

    message: str
    severity: Severity = Severity.OK
    report: DispatchReport | None = None
