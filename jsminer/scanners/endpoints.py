"""
API Endpoint Scanner.

Extracts request paths from HTTP call shapes in JavaScript, one issue
per HTTP method and resource.
"""

from __future__ import annotations

import re

from jsminer.models import Issue, ResourceType, ScanContext, ScannerType
from jsminer.patterns import ENDPOINTS
from jsminer.scanners.base import BaseScanner
from jsminer.utils import UniqueCollector, is_likely_endpoint


class EndpointsScanner(BaseScanner):
    """Scanner for GET/POST/PUT/DELETE/PATCH endpoint paths."""

    scanner_type = ScannerType.ENDPOINTS

    async def scan(self, context: ScanContext) -> list[Issue]:
        issues: list[Issue] = []
        for method, pattern in ENDPOINTS.items():
            issues.extend(self._scan_method(context, method, pattern))
        return issues

    def _scan_method(self, context: ScanContext, method: str, pattern: re.Pattern[str]) -> list[Issue]:
        issues: list[Issue] = []
        for resource in context.of_type(ResourceType.JS):
            matches = UniqueCollector()
            for match in pattern.finditer(resource.content):
                endpoint = next((group for group in match.groups() if group), "")
                if is_likely_endpoint(endpoint):
                    matches.add(endpoint)
            if matches:
                issues.append(
                    self._create_issue(
                        title=f"[JS Miner] API Endpoints ({method})",
                        description="The following API endpoints were found in a static file.",
                        resource_url=resource.url,
                        matches=matches,
                    )
                )
        return issues
