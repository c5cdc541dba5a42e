"""
Inline Source Map Scanner.

Reconstructs original sources from base64 source maps embedded in
JavaScript assets.
"""

from __future__ import annotations

from jsminer.archive import build_bundle
from jsminer.models import DownloadEntry, Issue, ResourceType, ScanContext, ScannerType
from jsminer.patterns import INLINE_SOURCE_MAP
from jsminer.scanners.base import BaseScanner
from jsminer.source_mapper import extract_sources_from_map
from jsminer.utils import decode_base64, dedupe, get_host


class InlineSourceMapScanner(BaseScanner):
    """Scanner for ``sourceMappingURL=data:application/json;base64,`` payloads."""

    scanner_type = ScannerType.INLINE_MAPS

    async def scan(self, context: ScanContext) -> list[Issue]:
        issues: list[Issue] = []
        for resource in context.of_type(ResourceType.JS):
            for match in INLINE_SOURCE_MAP.finditer(resource.content):
                entries = extract_sources_from_map(decode_base64(match.group("payload")))
                if not entries:
                    continue
                host = get_host(resource.url) or "inline-source"
                bundle = build_bundle(
                    "inline",
                    host,
                    [DownloadEntry(path=entry.path, data=entry.content.encode("utf-8")) for entry in entries],
                )
                issues.append(
                    self._create_issue(
                        title="[JS Miner] JavaScript Source Mapper (Inline)",
                        description="Inline base64 source maps were identified and reconstructed.",
                        resource_url=resource.url,
                        matches=dedupe([entry.path for entry in entries]),
                        download=bundle,
                    )
                )
                self.logger.info("inline_source_map_reconstructed", url=resource.url, files=len(entries))
        return issues
