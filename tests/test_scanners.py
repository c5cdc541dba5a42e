"""Tests for the cloud, subdomain, endpoint, source map and dump scanners."""

from __future__ import annotations

import httpx
import pytest

from jsminer.archive import assemble_bundle, export_downloads
from jsminer.models import ResourceType, ScanConfig
from jsminer.scanners import (
    ActiveSourceMapScanner,
    CloudUrlsScanner,
    EndpointsScanner,
    InlineSourceMapScanner,
    StaticFilesDumper,
    SubdomainsScanner,
)
from jsminer.scanners.active_source_mapper import build_map_url
from jsminer.utils import create_http_client

MAP_JSON = '{"version":3,"sources":["src/app.js","/src/util.js?v=2"],"sourcesContent":["console.log(1)"]}'
MAP_BASE64 = (
    "eyJ2ZXJzaW9uIjozLCJzb3VyY2VzIjpbInNyYy9hcHAuanMiLCIvc3JjL3V0aWwuanM/dj0yIl0s"
    "InNvdXJjZXNDb250ZW50IjpbImNvbnNvbGUubG9nKDEpIl19"
)


class TestCloudUrlsScanner:
    """Tests for CloudUrlsScanner."""

    @pytest.mark.asyncio
    async def test_finds_bucket_and_database_urls(self, config, make_resource, make_context) -> None:
        content = (
            'const b = "https://my-bucket.s3.amazonaws.com/uploads/a.png";\n'
            'const f = "https://proj-default-rtdb.firebaseio.com";\n'
            'const again = "https://my-bucket.s3.amazonaws.com/uploads/a.png";\n'
            'const g = "https://storage.googleapis.com/assets-prod/logo.svg";\n'
        )

        issues = await CloudUrlsScanner(config).scan(make_context(make_resource(content)))

        assert len(issues) == 1
        assert issues[0].title == "[JS Miner] Cloud Resources"
        assert issues[0].matches == [
            "https://my-bucket.s3.amazonaws.com/uploads/a.png",
            "https://proj-default-rtdb.firebaseio.com",
            "https://storage.googleapis.com/assets-prod/logo.svg",
        ]

    @pytest.mark.asyncio
    async def test_no_cloud_urls(self, config, make_resource, make_context) -> None:
        issues = await CloudUrlsScanner(config).scan(make_context(make_resource('fetch("https://example.com/api")')))

        assert issues == []


class TestSubdomainsScanner:
    """Tests for SubdomainsScanner."""

    @pytest.mark.asyncio
    async def test_resource_host_root(self, config, make_resource, make_context) -> None:
        resource = make_resource(
            'a="https://api.example.com/v1";b="www.example.com";c="//cdn.example.com/x";'
            'd="example.com";e="evil-example.com";f="API.example.com"',
            url="https://www.example.com/static/app.js",
        )

        issues = await SubdomainsScanner(config).scan(make_context(resource))

        assert len(issues) == 1
        assert issues[0].title == "[JS Miner] Subdomains"
        assert issues[0].matches == ["api.example.com", "cdn.example.com", "API.example.com"]

    @pytest.mark.asyncio
    async def test_referrer_root_wins(self, config, make_resource, make_context) -> None:
        resource = make_resource(
            'const a = "auth.corp.io"; const b = "img.thirdparty.net";',
            url="https://cdn.thirdparty.net/x.js",
        )
        context = make_context(resource, page_url="https://app.corp.io/", referrer="https://portal.corp.io/login")

        issues = await SubdomainsScanner(config).scan(context)

        assert issues[0].matches == ["auth.corp.io"]

    @pytest.mark.asyncio
    async def test_own_host_is_not_reported(self, config, make_resource, make_context) -> None:
        resource = make_resource('x="app.example.com"', url="https://app.example.com/main.js")

        assert await SubdomainsScanner(config).scan(make_context(resource)) == []


class TestEndpointsScanner:
    """Tests for EndpointsScanner."""

    @pytest.mark.asyncio
    async def test_endpoints_grouped_by_method(self, config, make_resource, make_context) -> None:
        content = (
            'axios.get("/api/v1/users");\n'
            "axios.post('/api/v1/login', body);\n"
            'fetch("/api/health");\n'
            'fetch("/api/items", {method: "DELETE"});\n'
            'xhr.open("PUT", "/api/items/1");\n'
            '$.get("<div>/x</div>");\n'
            'axios.get("config");\n'
            'axios.get("/api/v1/users");\n'
        )

        issues = await EndpointsScanner(config).scan(make_context(make_resource(content)))

        assert [i.title for i in issues] == [
            "[JS Miner] API Endpoints (GET)",
            "[JS Miner] API Endpoints (POST)",
            "[JS Miner] API Endpoints (PUT)",
            "[JS Miner] API Endpoints (DELETE)",
        ]
        assert issues[0].matches == ["/api/v1/users", "/api/health"]
        assert issues[1].matches == ["/api/v1/login"]
        assert issues[2].matches == ["/api/items/1"]
        assert issues[3].matches == ["/api/items"]

    @pytest.mark.asyncio
    async def test_only_javascript_is_scanned(self, config, make_resource, make_context) -> None:
        resource = make_resource('{"x": "axios.get(\\"/api\\")"}', type=ResourceType.JSON)

        assert await EndpointsScanner(config).scan(make_context(resource)) == []


class TestInlineSourceMapScanner:
    """Tests for InlineSourceMapScanner."""

    @pytest.mark.asyncio
    async def test_reconstructs_embedded_map(self, config, make_resource, make_context) -> None:
        content = f"console.log(1);\n//# sourceMappingURL=data:application/json;charset=utf-8;base64,{MAP_BASE64}\n"
        resource = make_resource(content, url="https://example.com/static/app.js")

        issues = await InlineSourceMapScanner(config).scan(make_context(resource))

        assert len(issues) == 1
        issue = issues[0]
        assert issue.title == "[JS Miner] JavaScript Source Mapper (Inline)"
        assert issue.matches == ["src/app.js", "src/util.js"]
        assert issue.download is not None
        assert issue.download.zip_name.startswith("JS-Miner-inline-example.com-")
        assert [(e.path, e.data) for e in issue.download.entries] == [
            ("src/app.js", b"console.log(1)"),
            ("src/util.js", b""),
        ]

    @pytest.mark.asyncio
    async def test_undecodable_payload_is_skipped(self, config, make_resource, make_context) -> None:
        resource = make_resource("//# sourceMappingURL=data:application/json;base64,bm90IGpzb24=")

        assert await InlineSourceMapScanner(config).scan(make_context(resource)) == []

    @pytest.mark.asyncio
    async def test_maps_on_one_host_export_to_separate_archives(
        self, config, make_resource, make_context, tmp_path
    ) -> None:
        content = f"//# sourceMappingURL=data:application/json;base64,{MAP_BASE64}"
        context = make_context(
            make_resource(content, url="https://example.com/#inline-script-1", is_inline=True),
            make_resource(content, url="https://example.com/#inline-script-2", is_inline=True),
        )

        issues = await InlineSourceMapScanner(config).scan(context)
        written = export_downloads(issues, tmp_path)

        assert len(issues) == 2
        assert len(set(written)) == 2
        assert sorted(p.name for p in tmp_path.iterdir()) == sorted(p.name for p in written)


class TestActiveSourceMapScanner:
    """Tests for ActiveSourceMapScanner."""

    def test_build_map_url_drops_query(self) -> None:
        assert build_map_url("https://cdn.example.com/static/app.js?v=3") == "https://cdn.example.com/static/app.js.map"
        assert build_map_url("https://example.com/#inline-script-1") == "https://example.com/.map"
        assert build_map_url("data:text/javascript,1") is None

    @pytest.mark.asyncio
    async def test_fetches_maps_with_ambient_credentials(self, make_resource, make_context, routed_transport) -> None:
        config = ScanConfig(cookies={"session": "abc"})
        transport, seen = routed_transport(
            {
                "https://cdn.example.com/static/app.js.map": MAP_JSON,
                "https://cdn.example.com/static/other.js.map": "<html>sources</html>",
            }
        )
        context = make_context(
            make_resource("a", url="https://cdn.example.com/static/app.js?v=3"),
            make_resource("b", url="https://cdn.example.com/static/vendor.js"),
            make_resource("c", url="https://cdn.example.com/static/other.js"),
            make_resource("d", url="https://example.com/#inline-script-1", is_inline=True),
            make_resource("e", url="https://cdn.example.com/site.css", type=ResourceType.CSS),
        )

        async with create_http_client(config, transport=transport) as client:
            issues = await ActiveSourceMapScanner(config, client).scan(context)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.title == "[JS Miner] JavaScript Source Mapper (Active)"
        assert issue.resource_url == "https://cdn.example.com/static/app.js.map"
        assert issue.matches == ["src/app.js", "src/util.js"]
        assert issue.download.zip_name.startswith("JS-Miner-active-cdn.example.com-")

        assert sorted(str(r.url) for r in seen) == [
            "https://cdn.example.com/static/app.js.map",
            "https://cdn.example.com/static/other.js.map",
            "https://cdn.example.com/static/vendor.js.map",
        ]
        assert all(r.headers.get("cookie") == "session=abc" for r in seen)

    @pytest.mark.asyncio
    async def test_network_errors_are_skipped(self, config, make_resource, make_context, routed_transport) -> None:
        transport, _ = routed_transport({"https://cdn.example.com/app.js.map": httpx.ConnectTimeout("timed out")})

        async with httpx.AsyncClient(transport=transport) as client:
            issues = await ActiveSourceMapScanner(config, client).scan(
                make_context(make_resource("a", url="https://cdn.example.com/app.js"))
            )

        assert issues == []


class TestStaticFilesDumper:
    """Tests for StaticFilesDumper."""

    @pytest.mark.asyncio
    async def test_dumps_every_static_asset(self, config, make_resource, make_context) -> None:
        context = make_context(
            make_resource("var a;", url="https://shop.example.com/static/app.js", raw_bytes=b"\xef\xbb\xbfvar a;"),
            make_resource("body{}", url="https://shop.example.com/static/app.css", type=ResourceType.CSS, raw_bytes=b""),
            make_resource(
                "var b;",
                url="https://shop.example.com/#inline-script-1",
                is_inline=True,
                path="/inline/script-1.js",
            ),
            make_resource("{}", url="https://shop.example.com/static/app.js.map", type=ResourceType.MAP),
            make_resource("var c;", url="https://cdn.example.com/static/app.js"),
            page_url="https://shop.example.com/",
        )

        issues = await StaticFilesDumper(config).scan(context)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.title == "[JS Miner] Static Files Dumper"
        assert issue.resource_url == "https://shop.example.com/"
        assert issue.matches == ["/static/app.js", "/static/app.css", "/inline/script-1.js", "/static/app.js.map"]

        bundle = issue.download
        assert bundle.zip_name.startswith("JS-Miner-dump-shop.example.com-")
        assert bundle.entries[0].data == b"\xef\xbb\xbfvar a;"
        assert bundle.entries[1].data == b"body{}"

        root = bundle.root_dir
        assert [e.path for e in assemble_bundle(bundle)] == [
            f"{root}/static/app.js",
            f"{root}/static/app.css",
            f"{root}/inline/script-1.js",
            f"{root}/static/app.js.map",
            f"{root}/static/app_1.js",
        ]

    @pytest.mark.asyncio
    async def test_no_assets_no_issue(self, config, make_context) -> None:
        assert await StaticFilesDumper(config).scan(make_context()) == []
