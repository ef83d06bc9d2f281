"""Tests for the cache debug prober using mocked HTTP responses."""

from typing import Any

import httpx
import pytest
import respx

from varnishban import (
    AsyncBanService,
    AsyncCacheProber,
    BanService,
    CacheProber,
    TransportError,
    ValidationError,
    VarnishSettings,
)
from varnishban.probe import build_probe_url


class TestBuildProbeUrl:
    """Tests for URL validation and port rewriting."""

    def test_keeps_url_without_port(self) -> None:
        assert str(build_probe_url("https://example.com/page")) == (
            "https://example.com/page"
        )

    def test_rewrites_port(self) -> None:
        url = build_probe_url("https://example.com/page?x=1", 8080)
        assert url.port == 8080
        assert url.host == "example.com"
        assert url.path == "/page"
        assert url.query == b"x=1"

    @pytest.mark.parametrize(
        "url", ["", "example.com/page", "ftp://example.com/", "/relative"]
    )
    def test_rejects_malformed_url(self, url: str) -> None:
        with pytest.raises(ValidationError):
            build_probe_url(url)

    @pytest.mark.parametrize("port", [0, 65536, -1])
    def test_rejects_bad_port(self, port: int) -> None:
        with pytest.raises(ValidationError, match="Port"):
            build_probe_url("https://example.com/", port)


class TestCacheProber:
    """Tests for sync CacheProber."""

    @respx.mock
    def test_reverse_lookup_port(self, prober: CacheProber) -> None:
        """Test that the port is rewritten but the original host is reported."""
        route = respx.get("https://example.com:8080/page").mock(
            return_value=httpx.Response(200, headers={"X-Cache": "HIT"})
        )

        result = prober.probe("https://example.com/page", reverse_lookup_port=8080)

        assert route.called
        request = route.calls[0].request
        assert request.headers["X-Cache-Debug"] == "1"
        assert request.url.port == 8080
        assert result.host == "example.com"
        assert result.url == "https://example.com/page"
        assert result.status_code == 200
        assert result.is_cache_hit is True

    @respx.mock
    def test_port_from_settings(self) -> None:
        settings = VarnishSettings(reverse_lookup_port=6081)
        route = respx.get("http://example.com:6081/").mock(
            return_value=httpx.Response(200)
        )

        CacheProber(settings).probe("http://example.com/")

        assert route.called

    @respx.mock
    def test_repeated_header_keeps_last_value(self, prober: CacheProber) -> None:
        """Test that a header repeated per hop keeps only its final value."""
        respx.get("https://example.com/page").mock(
            return_value=httpx.Response(
                200,
                headers=[
                    ("X-Cache", "MISS"),
                    ("X-Cache", "MISS"),
                    ("X-Cache", "HIT"),
                    ("Age", "12"),
                ],
            )
        )

        result = prober.probe("https://example.com/page")

        assert result.headers["X-Cache"] == "HIT"
        assert result.headers["Age"] == "12"
        assert result.header("x-cache") == "HIT"

    @respx.mock
    def test_non_success_is_informational(self, prober: CacheProber) -> None:
        respx.get("https://example.com/missing").mock(
            return_value=httpx.Response(404, headers={"X-Cache": "MISS"})
        )

        result = prober.probe("https://example.com/missing")

        assert result.status_code == 404
        assert result.is_cache_hit is False

    @respx.mock
    def test_missing_cache_header(self, prober: CacheProber) -> None:
        respx.get("https://example.com/").mock(return_value=httpx.Response(200))

        assert prober.probe("https://example.com/").is_cache_hit is None

    @respx.mock
    def test_transport_failure_raises(self, prober: CacheProber) -> None:
        """Test that connection failures are surfaced, not swallowed."""
        route = respx.get("https://example.com:8080/page").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        with pytest.raises(TransportError, match="Connection refused") as exc_info:
            prober.probe("https://example.com/page", 8080)

        assert exc_info.value.host == "example.com"
        assert route.call_count == 1

    def test_invalid_url_sends_nothing(self, prober: CacheProber) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(url__regex=r".*").mock(return_value=httpx.Response(200))
            with pytest.raises(ValidationError):
                prober.probe("not a url")
            assert not route.called


class TestClientSeparation:
    """Tests that probe and ban paths never share client settings."""

    def test_only_probe_disables_verification(
        self, monkeypatch: pytest.MonkeyPatch, settings: VarnishSettings
    ) -> None:
        created: list[dict[str, Any]] = []
        real_client = httpx.Client

        def recording_client(**kwargs: Any) -> httpx.Client:
            created.append(kwargs)
            return real_client(**kwargs)

        monkeypatch.setattr(httpx, "Client", recording_client)

        CacheProber(settings)
        BanService(settings)

        probe_kwargs, ban_kwargs = created
        assert probe_kwargs["verify"] is False
        assert probe_kwargs["headers"] == {"X-Cache-Debug": "1"}
        assert ban_kwargs.get("verify", True) is True
        assert "headers" not in ban_kwargs
        assert probe_kwargs["timeout"] == ban_kwargs["timeout"] == 2.0

    def test_async_clients_carry_timeout(
        self, monkeypatch: pytest.MonkeyPatch, settings: VarnishSettings
    ) -> None:
        """Test that the configured timeout bounds every async request."""
        created: list[dict[str, Any]] = []
        real_client = httpx.AsyncClient

        def recording_client(**kwargs: Any) -> httpx.AsyncClient:
            created.append(kwargs)
            return real_client(**kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", recording_client)

        AsyncCacheProber(settings)
        AsyncBanService(settings)

        probe_kwargs, ban_kwargs = created
        assert probe_kwargs["timeout"] == ban_kwargs["timeout"] == 2.0
        assert probe_kwargs["verify"] is False
        assert ban_kwargs.get("verify", True) is True

    @respx.mock
    def test_ban_requests_carry_no_debug_header(
        self, ban_service: BanService
    ) -> None:
        route = respx.route(method="BAN", url="http://varnish.test/").mock(
            return_value=httpx.Response(200)
        )

        ban_service.ban_by_tags(["news"])

        assert "X-Cache-Debug" not in route.calls[0].request.headers


class TestAsyncCacheProber:
    """Tests for AsyncCacheProber."""

    @respx.mock
    async def test_probe(self, settings: VarnishSettings) -> None:
        prober = AsyncCacheProber(settings)
        route = respx.get("https://example.com:8080/page").mock(
            return_value=httpx.Response(
                200, headers=[("Via", "1.1 a"), ("Via", "1.1 varnish")]
            )
        )

        result = await prober.probe("https://example.com/page", 8080)

        assert route.calls[0].request.headers["X-Cache-Debug"] == "1"
        assert result.host == "example.com"
        assert result.headers["Via"] == "1.1 varnish"
        await prober.close()

    @respx.mock
    async def test_transport_failure_raises(self, settings: VarnishSettings) -> None:
        prober = AsyncCacheProber(settings)
        respx.get("https://example.com/").mock(side_effect=httpx.ConnectTimeout)

        with pytest.raises(TransportError):
            await prober.probe("https://example.com/")
