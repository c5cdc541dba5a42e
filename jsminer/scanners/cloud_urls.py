"""
Cloud URL Scanner.

Finds references to cloud storage buckets and serverless endpoints.
"""

from __future__ import annotations

from jsminer.models import Issue, ResourceType, ScanContext, ScannerType
from jsminer.patterns import CLOUD_URLS
from jsminer.scanners.base import BaseScanner
from jsminer.utils import UniqueCollector


class CloudUrlsScanner(BaseScanner):
    """Scanner for S3, GCS, Azure, Firebase and similar resource URLs."""

    scanner_type = ScannerType.CLOUD

    async def scan(self, context: ScanContext) -> list[Issue]:
        issues: list[Issue] = []
        for resource in context.of_type(ResourceType.JS, ResourceType.JSON):
            matches = UniqueCollector()
            for match in CLOUD_URLS.finditer(resource.content):
                matches.add(match.group(0))
            if matches:
                issues.append(
                    self._create_issue(
                        title="[JS Miner] Cloud Resources",
                        description="The following cloud URLs were found in a static file.",
                        resource_url=resource.url,
                        matches=matches,
                    )
                )
        return issues
