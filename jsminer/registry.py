"""
NPM registry verification for dependency confusion checks.

The registry client memoizes a one-time connectivity probe and turns
each package lookup into an optional verdict: ``None`` means there is
nothing to report, including when the lookup itself failed.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from jsminer.models import ScanConfig, Severity
from jsminer.npm_package import NPMPackage
from jsminer.utils import open_client

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegistryVerdict:
    """Outcome of verifying one package against the registry."""

    title: str
    severity: Severity
    detail: str


class RegistryClient:
    """
    Registry lookups with a memoized connectivity probe.

    One instance is meant to be shared by every dependency confusion
    scan of a run, so the probe happens at most once.
    """

    def __init__(self, config: ScanConfig, client: httpx.AsyncClient | None = None) -> None:
        """
        Initialize the registry client.

        Args:
            config: Scan configuration holding the registry URLs
            client: Shared HTTP client (a temporary one is used when omitted)
        """
        self.config = config
        self.client = client
        self._reachable: bool | None = None

    @property
    def probed(self) -> bool:
        return self._reachable is not None

    async def is_reachable(self) -> bool:
        """Whether both the registry website and API answer successfully."""
        if self._reachable is None:
            self._reachable = await self._probe()
            logger.info("registry_connectivity", reachable=self._reachable)
        return self._reachable

    async def _probe(self) -> bool:
        robots_url = f"{self.config.registry_frontend_url}/robots.txt"
        api_url = f"{self.config.registry_url}/"
        try:
            async with open_client(self.config, self.client) as client:
                robots = await client.get(robots_url)
                api = await client.get(api_url)
        except httpx.HTTPError as e:
            logger.warning("registry_probe_failed", error=str(e))
            return False
        return robots.is_success and api.is_success

    async def verify(self, package: NPMPackage) -> RegistryVerdict | None:
        """
        Classify a package.

        Versions that resolve outside the public registry are reported
        without any request. Scoped names check the organization page,
        unscoped names the package endpoint; only a 404 is a finding.
        """
        if not package.is_version_valid_npm():
            return RegistryVerdict(
                title="[JS Miner] Dependency (Non-NPM registry package)",
                severity=Severity.INFORMATION,
                detail=(
                    "The following non-NPM dependency was found in a static file. "
                    "The version might contain a public repository URL, a private "
                    "repository URL or a file path. Manual review is advised."
                ),
            )

        if package.is_scoped:
            org_url = f"{self.config.registry_frontend_url}/org/{package.org_name}"
            if await self._status(org_url) == 404:
                return RegistryVerdict(
                    title="[JS Miner] Dependency (organization not found)",
                    severity=Severity.HIGH,
                    detail=(
                        "The following potentially exploitable dependency was found in a "
                        "static file. The organization does not seem to be available, which "
                        f"indicates that it can be registered: {org_url}"
                    ),
                )
            return None

        package_url = f"{self.config.registry_url}/{package.name}"
        if await self._status(package_url) == 404:
            return RegistryVerdict(
                title="[JS Miner] Dependency Confusion",
                severity=Severity.HIGH,
                detail=(
                    "The following potentially exploitable dependency was found in a "
                    "static file. There was no entry for this package on the npm "
                    f"registry: {package_url}"
                ),
            )
        return None

    async def _status(self, url: str) -> int | None:
        """Status code of a GET request, ``None`` when the request failed."""
        try:
            async with open_client(self.config, self.client) as client:
                response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("registry_lookup_failed", url=url, error=str(e))
            return None
        return response.status_code
