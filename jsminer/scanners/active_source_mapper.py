"""
Active Source Map Scanner.

Requests ``<script>.map`` next to every external script and reconstructs
the original sources it discloses.
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlparse

import httpx

from jsminer.archive import build_bundle
from jsminer.models import DownloadEntry, Issue, Resource, ResourceType, ScanConfig, ScanContext, ScannerType
from jsminer.scanners.base import BaseScanner
from jsminer.source_mapper import extract_sources_from_map
from jsminer.utils import dedupe, get_host, open_client


def build_map_url(resource_url: str) -> str | None:
    """Origin and path of the script with ``.map`` appended, query dropped."""
    try:
        parsed = urlparse(resource_url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}.map"


class ActiveSourceMapScanner(BaseScanner):
    """
    Scanner that fetches source maps with the page's ambient credentials.

    Unreachable maps, non-success responses and bodies that are not
    source maps are skipped per resource.
    """

    scanner_type = ScannerType.ACTIVE_MAPS

    def __init__(self, config: ScanConfig, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(config, client)
        self._semaphore = asyncio.Semaphore(config.max_concurrency)

    async def scan(self, context: ScanContext) -> list[Issue]:
        scripts = [r for r in context.of_type(ResourceType.JS) if not r.is_inline]
        if not scripts:
            return []
        async with open_client(self.config, self.client) as client:
            results = await asyncio.gather(*(self._scan_resource(client, r) for r in scripts))
        return [issue for issue in results if issue is not None]

    async def _scan_resource(self, client: httpx.AsyncClient, resource: Resource) -> Issue | None:
        map_url = build_map_url(resource.url)
        if not map_url:
            return None

        text = await self._fetch(client, map_url)
        # Both keys must be present before the body is parsed.
        if not text or "sources" not in text or "sourcesContent" not in text:
            return None

        entries = extract_sources_from_map(text)
        if not entries:
            return None

        bundle = build_bundle(
            "active",
            get_host(map_url) or "source-map",
            [DownloadEntry(path=entry.path, data=entry.content.encode("utf-8")) for entry in entries],
        )
        self.logger.info("source_map_retrieved", url=map_url, files=len(entries))
        return self._create_issue(
            title="[JS Miner] JavaScript Source Mapper (Active)",
            description="JavaScript source map file was retrieved via active request.",
            resource_url=map_url,
            matches=dedupe([entry.path for entry in entries]),
            download=bundle,
        )

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> str | None:
        try:
            async with self._semaphore:
                response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.debug("source_map_fetch_failed", url=url, error=str(e))
            return None
        if not response.is_success:
            self.logger.debug("source_map_unavailable", url=url, status=response.status_code)
            return None
        return response.text
