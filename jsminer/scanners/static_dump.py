"""
Static Files Dumper.

Packages every static asset of the page into one download bundle.
"""

from __future__ import annotations

from jsminer.archive import build_bundle
from jsminer.models import DownloadEntry, Issue, Resource, ResourceType, ScanContext, ScannerType
from jsminer.scanners.base import BaseScanner
from jsminer.utils import dedupe, get_host, path_from_url


def resource_path(resource: Resource) -> str:
    """Declared path, else one derived from the URL with a typed fallback name."""
    if resource.path:
        return resource.path
    return path_from_url(resource.url, resource.type.fallback_name)


class StaticFilesDumper(BaseScanner):
    """Scanner exporting JavaScript, JSON, CSS and source map files byte-exact."""

    scanner_type = ScannerType.STATIC_DUMP

    async def scan(self, context: ScanContext) -> list[Issue]:
        entries = [
            DownloadEntry(
                path=resource_path(resource),
                data=resource.raw_bytes or resource.content.encode("utf-8"),
            )
            for resource in context.of_type(ResourceType.JS, ResourceType.JSON, ResourceType.CSS, ResourceType.MAP)
        ]
        if not entries:
            return []

        bundle = build_bundle("dump", get_host(context.page_url) or "static-dump", entries)
        return [
            self._create_issue(
                title="[JS Miner] Static Files Dumper",
                description="Static files were extracted from the current page context.",
                resource_url=context.page_url,
                matches=dedupe([entry.path for entry in entries]),
                download=bundle,
            )
        ]
