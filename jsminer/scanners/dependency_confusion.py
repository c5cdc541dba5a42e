"""
Dependency Confusion Scanner.

Extracts npm package references from static assets and verifies them
against the public registry to find names an attacker could claim.
"""

from __future__ import annotations

import asyncio
import re

import httpx

from jsminer.models import Confidence, Issue, Resource, ResourceType, ScanConfig, ScanContext, ScannerType
from jsminer.npm_package import NPMPackage
from jsminer.patterns import DEPENDENCY_BLOCK, NODE_MODULES_DISCLOSURE
from jsminer.registry import RegistryClient, RegistryVerdict
from jsminer.scanners.base import BaseScanner
from jsminer.utils import UniqueCollector

_WHITESPACE_RE = re.compile(r"\s")


class DependencyConfusionScanner(BaseScanner):
    """
    Scanner for disclosed dependencies and dependency confusion.

    Checks for:
    - Dependency declaration blocks (package.json / lockfile shapes)
    - ``/node_modules/<name>`` path disclosures
    - Non-registry versions (git, file, link, ... references)
    - Unregistered package names and unclaimed organizations
    """

    scanner_type = ScannerType.DEPENDENCY

    def __init__(
        self,
        config: ScanConfig,
        client: httpx.AsyncClient | None = None,
        registry: RegistryClient | None = None,
    ) -> None:
        """
        Initialize scanner with configuration and registry access.

        Args:
            config: Scan configuration
            client: Shared HTTP client
            registry: Registry client whose connectivity probe is reused
                across scans (a private one is created when omitted)
        """
        super().__init__(config, client)
        self.registry = registry or RegistryClient(config, client)
        self._semaphore = asyncio.Semaphore(config.max_concurrency)

    async def scan(self, context: ScanContext) -> list[Issue]:
        """Scan JavaScript, JSON and CSS resources for dependencies."""
        issues: list[Issue] = []
        reported: set[tuple[str, str, str, str]] = set()

        for resource in context.of_type(ResourceType.JS, ResourceType.JSON, ResourceType.CSS):
            matches, packages = self.extract_packages(resource)
            if not matches:
                continue

            issues.append(
                self._create_issue(
                    title="[JS Miner] Dependencies",
                    description="The following dependencies were found in a static file.",
                    resource_url=resource.url,
                    matches=matches,
                )
            )

            verdicts = await self._verify_all(packages)
            for package, verdict in zip(packages, verdicts):
                if verdict is None:
                    continue
                key = (verdict.title, verdict.detail, package.key, resource.url)
                if key in reported:
                    continue
                reported.add(key)
                issues.append(
                    self._create_issue(
                        title=verdict.title,
                        description=verdict.detail,
                        resource_url=resource.url,
                        matches=[package.display_name],
                        severity=verdict.severity,
                        confidence=Confidence.CERTAIN,
                    )
                )

        return issues

    def extract_packages(self, resource: Resource) -> tuple[UniqueCollector, list[NPMPackage]]:
        """
        Collect valid package references from one resource.

        Returns:
            Disclosed ``name_with_version`` strings and the unique packages
            (by ``NPMPackage.key``) in discovery order
        """
        matches = UniqueCollector()
        packages: dict[str, NPMPackage] = {}

        def record(package: NPMPackage) -> None:
            if package.is_name_valid():
                matches.add(package.display_name)
                packages.setdefault(package.key, package)

        if resource.type != ResourceType.CSS:
            normalized = _WHITESPACE_RE.sub("", resource.content)
            for block in DEPENDENCY_BLOCK.finditer(normalized):
                for dependency in block.group("block").split(","):
                    record(NPMPackage.from_declaration(dependency))

        for disclosure in NODE_MODULES_DISCLOSURE.finditer(resource.content):
            record(NPMPackage.from_disclosure(disclosure.group("name")))

        return matches, list(packages.values())

    async def _verify_all(self, packages: list[NPMPackage]) -> list[RegistryVerdict | None]:
        """Verify packages concurrently, results aligned with the input."""
        if not packages:
            return []

        needs_registry = any(package.is_version_valid_npm() for package in packages)
        reachable = await self.registry.is_reachable() if needs_registry else False

        async def verify(package: NPMPackage) -> RegistryVerdict | None:
            if package.is_version_valid_npm() and not reachable:
                return None
            async with self._semaphore:
                return await self.registry.verify(package)

        return list(await asyncio.gather(*(verify(package) for package in packages)))
