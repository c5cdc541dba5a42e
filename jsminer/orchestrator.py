"""
Scan Orchestrator for JS Miner.

Manages the scan lifecycle: collects and enriches the page's resources,
runs the selected scanners and aggregates their results in a stable
order.
"""

from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from jsminer.collector import CollectedPage, ResourceEnricher, collect_from_html
from jsminer.models import ScanConfig, ScanContext, ScannerType, ScanReport, ScanResult
from jsminer.registry import RegistryClient
from jsminer.scanners import (
    ActiveSourceMapScanner,
    BaseScanner,
    CloudUrlsScanner,
    DependencyConfusionScanner,
    EndpointsScanner,
    InlineSourceMapScanner,
    SecretsScanner,
    StaticFilesDumper,
    SubdomainsScanner,
)
from jsminer.utils import create_http_client

logger = structlog.get_logger(__name__)


class ScannerPool:
    """
    Pool for scanner execution.

    Runs every enabled scanner over the same context, concurrently or
    one after another, and always returns one result per scanner in
    invocation order.
    """

    def __init__(
        self,
        config: ScanConfig,
        client: httpx.AsyncClient | None = None,
        registry: RegistryClient | None = None,
    ) -> None:
        """Initialize scanner pool with configuration."""
        self.config = config
        self.client = client
        self.registry = registry or RegistryClient(config, client)
        self.scanners: list[BaseScanner] = []
        self._initialize_scanners()

    def _initialize_scanners(self) -> None:
        """Initialize enabled scanners in invocation order."""
        scanner_classes: dict[ScannerType, type[BaseScanner]] = {
            ScannerType.SECRETS: SecretsScanner,
            ScannerType.CLOUD: CloudUrlsScanner,
            ScannerType.SUBDOMAINS: SubdomainsScanner,
            ScannerType.ENDPOINTS: EndpointsScanner,
            ScannerType.INLINE_MAPS: InlineSourceMapScanner,
            ScannerType.ACTIVE_MAPS: ActiveSourceMapScanner,
            ScannerType.STATIC_DUMP: StaticFilesDumper,
        }

        for scanner_type in self.config.scanners:
            if scanner_type == ScannerType.DEPENDENCY:
                scanner: BaseScanner = DependencyConfusionScanner(self.config, self.client, self.registry)
            else:
                scanner = scanner_classes[scanner_type](self.config, self.client)
            self.scanners.append(scanner)
            logger.debug("scanner_initialized", scanner=scanner_type.value)

    async def run_all(self, context: ScanContext) -> list[ScanResult]:
        """
        Run all scanners.

        Args:
            context: Enriched page context

        Returns:
            One result per scanner, in invocation order
        """
        if self.config.parallel:
            results = list(await asyncio.gather(*(self._run_scanner(s, context) for s in self.scanners)))
        else:
            results = []
            for scanner in self.scanners:
                results.append(await self._run_scanner(scanner, context))

        logger.info(
            "all_scanners_complete",
            page=context.page_url,
            total_issues=sum(len(r.issues) for r in results),
            failed=[r.scanner.value for r in results if r.error],
        )
        return results

    async def _run_scanner(self, scanner: BaseScanner, context: ScanContext) -> ScanResult:
        """Run a single scanner; an internal failure yields an empty result."""
        started = time.monotonic()
        try:
            issues = await scanner.scan(context)
        except Exception as e:
            logger.error("scanner_failed", scanner=scanner.scanner_type.value, error=str(e))
            return ScanResult(
                scanner=scanner.scanner_type,
                error=str(e) or type(e).__name__,
                duration_seconds=time.monotonic() - started,
            )

        logger.info("scanner_issues", scanner=scanner.scanner_type.value, issue_count=len(issues))
        return ScanResult(
            scanner=scanner.scanner_type,
            issues=issues,
            duration_seconds=time.monotonic() - started,
        )


class ScanOrchestrator:
    """
    Main scan orchestrator.

    Coordinates the scan lifecycle:
    1. Resource collection (page HTML or collector document)
    2. Enrichment of every resource before scanning
    3. Scanner execution
    4. Result aggregation

    The orchestrator owns the HTTP client and the registry client, so
    the registry connectivity probe runs at most once per orchestrator.
    Use it as an async context manager or call ``aclose()``.
    """

    def __init__(
        self,
        config: ScanConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize scan orchestrator.

        Args:
            config: Scan configuration
            transport: Optional HTTP transport (used to stub the network)
        """
        self.config = config
        self.client = create_http_client(config, transport=transport)
        self.registry = RegistryClient(config, self.client)
        self.enricher = ResourceEnricher(config, self.client)
        self.scanner_pool = ScannerPool(config, self.client, self.registry)

    async def __aenter__(self) -> "ScanOrchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def scan_url(self, page_url: str, referrer: str = "") -> ScanReport:
        """
        Fetch a page, collect its resources and scan them.

        A page that cannot be fetched is scanned with no resources.
        """
        html = ""
        try:
            response = await self.client.get(page_url)
            if response.is_success:
                html = response.text
            else:
                logger.warning("page_unavailable", url=page_url, status=response.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("page_fetch_failed", url=page_url, error=str(e))

        return await self.scan_page(collect_from_html(page_url, html, referrer))

    async def scan_page(self, page: CollectedPage) -> ScanReport:
        """Enrich a collected page and run the scanners over it."""
        report = ScanReport(page_url=page.page_url)
        logger.info("scan_started", page=page.page_url, resources=len(page.resources))

        context = await self.enricher.enrich(page)
        report.resources_scanned = len(context.resources)
        report.results = await self.scanner_pool.run_all(context)
        report.finalize()

        logger.info(
            "scan_completed",
            page=page.page_url,
            issues=sum(len(r.issues) for r in report.results),
            duration=f"{report.duration_seconds:.2f}s",
        )
        return report

    async def scan_context(self, context: ScanContext) -> ScanReport:
        """Run the scanners over an already enriched context."""
        report = ScanReport(page_url=context.page_url, resources_scanned=len(context.resources))
        report.results = await self.scanner_pool.run_all(context)
        report.finalize()
        return report
