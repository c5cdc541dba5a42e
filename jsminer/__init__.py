"""
JS Miner - static asset scanner for security-relevant disclosures.

Inspects a page's scripts, stylesheets, JSON and source maps for
secrets, dependency confusion, cloud resource URLs, subdomains, API
endpoints and leaked original sources.
"""

__version__ = "1.0.0"

from jsminer.models import (
    Confidence,
    DownloadBundle,
    DownloadEntry,
    Issue,
    Resource,
    ResourceType,
    ScanConfig,
    ScanContext,
    ScanMode,
    ScannerType,
    ScanReport,
    ScanResult,
    Severity,
)
from jsminer.aggregator import flatten_issues
from jsminer.archive import assemble_bundle, ensure_unique_paths, write_zip
from jsminer.collector import CollectedPage, CollectionError, collect_from_html, load_collected_page
from jsminer.orchestrator import ScannerPool, ScanOrchestrator
from jsminer.registry import RegistryClient

__all__ = [
    "__version__",
    "Confidence",
    "DownloadBundle",
    "DownloadEntry",
    "Issue",
    "Resource",
    "ResourceType",
    "ScanConfig",
    "ScanContext",
    "ScanMode",
    "ScannerType",
    "ScanReport",
    "ScanResult",
    "Severity",
    "flatten_issues",
    "assemble_bundle",
    "ensure_unique_paths",
    "write_zip",
    "CollectedPage",
    "CollectionError",
    "collect_from_html",
    "load_collected_page",
    "ScannerPool",
    "ScanOrchestrator",
    "RegistryClient",
]
