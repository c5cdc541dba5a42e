"""
Subdomain Scanner.

Discovers hostnames under the audited organization's root domain that
are referenced by static assets.
"""

from __future__ import annotations

from urllib.parse import unquote

from jsminer.models import Issue, Resource, ResourceType, ScanContext, ScannerType
from jsminer.patterns import subdomain_pattern
from jsminer.scanners.base import BaseScanner
from jsminer.utils import (
    UniqueCollector,
    get_domain_from_referrer,
    get_host,
    get_root_domain,
    is_matched_domain_valid,
)


class SubdomainsScanner(BaseScanner):
    """
    Scanner for subdomains of the audited root domain.

    The root domain comes from the referrer when there is one, since it
    names the organization under audit; otherwise from each resource's
    own host.
    """

    scanner_type = ScannerType.SUBDOMAINS

    async def scan(self, context: ScanContext) -> list[Issue]:
        issues: list[Issue] = []
        page_host = get_host(context.page_url)
        referrer_root = get_domain_from_referrer(context.referrer)

        for resource in context.of_type(ResourceType.JS, ResourceType.JSON):
            resource_host = get_host(resource.url) or page_host
            root_domain = referrer_root or get_root_domain(resource_host)
            if not root_domain:
                continue
            matches = self.find_subdomains(resource, root_domain, resource_host)
            if matches:
                issues.append(
                    self._create_issue(
                        title="[JS Miner] Subdomains",
                        description="The following subdomains were found in a static file.",
                        resource_url=resource.url,
                        matches=matches,
                    )
                )
        return issues

    def find_subdomains(self, resource: Resource, root_domain: str, resource_host: str) -> UniqueCollector:
        """Accepted, URL-decoded hostnames ending in the root domain."""
        matches = UniqueCollector()
        for match in subdomain_pattern(root_domain).finditer(resource.content):
            value = unquote(match.group(0))
            if is_matched_domain_valid(value, root_domain, resource_host):
                matches.add(value)
        return matches
