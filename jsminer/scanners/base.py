"""
Base scanner class defining the interface for all JS Miner scanners.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx
import structlog

from jsminer.models import Confidence, DownloadBundle, Issue, ScannerType, Severity
from jsminer.utils import UniqueCollector

if TYPE_CHECKING:
    from jsminer.models import ScanConfig, ScanContext


class BaseScanner(ABC):
    """
    Abstract base class for resource scanners.

    Provides common infrastructure including logging, configuration access,
    and the standard scan interface. Scanners only read the context and
    never mutate the resources it holds.
    """

    scanner_type: ScannerType

    def __init__(
        self,
        config: "ScanConfig",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize scanner with scan configuration.

        Args:
            config: Scan configuration
            client: Shared HTTP client for scanners that make requests
        """
        self.config = config
        self.client = client
        self.logger = structlog.get_logger(scanner=self.scanner_type.value)

    @abstractmethod
    async def scan(self, context: "ScanContext") -> list[Issue]:
        """
        Scan the page's resources.

        Args:
            context: Enriched page context (page URL, referrer, resources)

        Returns:
            Issues in deterministic order
        """

    def _create_issue(
        self,
        title: str,
        description: str,
        resource_url: str,
        matches: UniqueCollector | list[str],
        severity: Severity = Severity.INFORMATION,
        confidence: Confidence = Confidence.CERTAIN,
        download: DownloadBundle | None = None,
    ) -> Issue:
        """
        Create an Issue with scanner context.

        Args:
            title: Issue title
            description: Detailed description
            resource_url: Resource the evidence came from
            matches: Evidence, already deduplicated
            severity: Impact ranking
            confidence: Trust in the match
            download: Optional bundle of recovered files

        Returns:
            Configured Issue instance
        """
        items = matches.items if isinstance(matches, UniqueCollector) else matches
        return Issue(
            title=title,
            severity=severity,
            confidence=confidence,
            description=description,
            resource_url=resource_url,
            matches=list(items),
            download=download,
        )
