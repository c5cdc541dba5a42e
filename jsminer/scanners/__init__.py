"""
Resource scanners for JS Miner.

Each scanner turns the enriched resources of a page into issues for one
disclosure category, independently of the others.
"""

from jsminer.scanners.base import BaseScanner
from jsminer.scanners.secrets import SecretsScanner
from jsminer.scanners.dependency_confusion import DependencyConfusionScanner
from jsminer.scanners.cloud_urls import CloudUrlsScanner
from jsminer.scanners.subdomains import SubdomainsScanner
from jsminer.scanners.endpoints import EndpointsScanner
from jsminer.scanners.inline_source_maps import InlineSourceMapScanner
from jsminer.scanners.active_source_mapper import ActiveSourceMapScanner
from jsminer.scanners.static_dump import StaticFilesDumper

__all__ = [
    "BaseScanner",
    "SecretsScanner",
    "DependencyConfusionScanner",
    "CloudUrlsScanner",
    "SubdomainsScanner",
    "EndpointsScanner",
    "InlineSourceMapScanner",
    "ActiveSourceMapScanner",
    "StaticFilesDumper",
]
