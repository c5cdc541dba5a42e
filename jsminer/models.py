"""
Pydantic models for the JS Miner static asset scanner.

Defines resources, issues, download bundles, per-scanner results,
the page-wide scan report and the scan configuration.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(StrEnum):
    """Impact ranking of an issue."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFORMATION = "INFORMATION"


class Confidence(StrEnum):
    """Trust that a match is a true positive."""

    CERTAIN = "CERTAIN"
    FIRM = "FIRM"
    TENTATIVE = "TENTATIVE"


class ResourceType(StrEnum):
    """Kinds of static assets gathered from a page."""

    JS = "js"
    CSS = "css"
    JSON = "json"
    MAP = "map"

    @property
    def extension(self) -> str:
        """File extension used when a resource has no path of its own."""
        return f".{self.value}"

    @property
    def fallback_name(self) -> str:
        """File name for a resource whose URL carries no path."""
        return f"inline-{self.value}{self.extension}"


class ScannerType(StrEnum):
    """Identifiers of the available scanners."""

    DEPENDENCY = "dependency"
    SUBDOMAINS = "subdomains"
    SECRETS = "secrets"
    CLOUD = "cloud"
    INLINE_MAPS = "inline_maps"
    ENDPOINTS = "endpoints"
    ACTIVE_MAPS = "active_maps"
    STATIC_DUMP = "static_dump"


class ScanMode(StrEnum):
    """Scan mode determining which scanners run by default."""

    PASSIVE = "passive"  # Pattern matching plus registry lookups
    ACTIVE = "active"  # Also requests source maps and dumps assets


PASSIVE_SCANNERS: tuple[ScannerType, ...] = (
    ScannerType.DEPENDENCY,
    ScannerType.SUBDOMAINS,
    ScannerType.SECRETS,
    ScannerType.CLOUD,
    ScannerType.INLINE_MAPS,
    ScannerType.ENDPOINTS,
)

ALL_SCANNERS: tuple[ScannerType, ...] = PASSIVE_SCANNERS + (
    ScannerType.ACTIVE_MAPS,
    ScannerType.STATIC_DUMP,
)


class Resource(BaseModel):
    """One static asset, enriched with its content before scanning."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(min_length=1, description="Absolute URL (inline assets carry a page fragment)")
    type: ResourceType = Field(description="Asset kind")
    is_inline: bool = Field(default=False, alias="isInline", description="Embedded in the page")
    content: str = Field(default="", description="Text used for all pattern matching")
    raw_bytes: bytes = Field(default=b"", description="Byte-exact body used for export")
    path: str = Field(default="", description="Logical path used inside archives")


class DownloadEntry(BaseModel):
    """A single file of a download bundle."""

    model_config = ConfigDict(frozen=True)

    path: str
    data: bytes


class DownloadBundle(BaseModel):
    """A named set of reconstructed files offered for export."""

    model_config = ConfigDict(frozen=True)

    zip_name: str = Field(min_length=1, description="Archive file name")
    root_dir: str = Field(min_length=1, description="Top-level directory inside the archive")
    entries: list[DownloadEntry] = Field(default_factory=list)


class Issue(BaseModel):
    """One normalized finding with severity, confidence and evidence."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, description="Brief issue title")
    severity: Severity = Field(description="Impact ranking")
    confidence: Confidence = Field(description="Trust in the match")
    description: str = Field(default="", description="Detailed description")
    resource_url: str = Field(default="", description="Asset the evidence came from")
    matches: list[str] = Field(default_factory=list, description="Unique evidence, first occurrence order")
    download: DownloadBundle | None = Field(default=None, description="Files recovered for export")
    scanner: ScannerType | None = Field(default=None, description="Originating scanner, set on aggregation")

    def summary(self) -> dict[str, Any]:
        """Display-oriented view without the bundle payload."""
        return {
            "scanner": self.scanner.value if self.scanner else None,
            "title": self.title,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
            "description": self.description,
            "resource_url": self.resource_url,
            "matches": list(self.matches),
            "has_download": self.download is not None,
        }


class ScanContext(BaseModel):
    """Enriched, immutable input shared by every scanner."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page_url: str = Field(default="", alias="pageUrl")
    referrer: str = Field(default="")
    resources: list[Resource] = Field(default_factory=list)

    def of_type(self, *types: ResourceType) -> list[Resource]:
        """Resources of the given types, in collection order."""
        return [resource for resource in self.resources if resource.type in types]


class ScanResult(BaseModel):
    """Outcome of one scanner invocation."""

    scanner: ScannerType
    issues: list[Issue] = Field(default_factory=list)
    error: str | None = Field(default=None, description="Internal failure, issues are then empty")
    duration_seconds: float = Field(default=0.0)


class ScanReport(BaseModel):
    """Results of all scanners invoked against one page."""

    page_url: str = Field(default="")
    results: list[ScanResult] = Field(default_factory=list)
    resources_scanned: int = Field(default=0)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = Field(default=None)
    duration_seconds: float = Field(default=0.0)

    @property
    def issues(self) -> list[Issue]:
        """Aggregated issues tagged with their scanner, in invocation order."""
        from jsminer.aggregator import flatten_issues

        return flatten_issues(self.results)

    @property
    def severity_counts(self) -> dict[Severity, int]:
        """Count issues by severity."""
        counts: dict[Severity, int] = {s: 0 for s in Severity}
        for result in self.results:
            for issue in result.issues:
                counts[issue.severity] += 1
        return counts

    @property
    def errors(self) -> dict[ScannerType, str]:
        """Scanners that failed internally, with their error text."""
        return {r.scanner: r.error for r in self.results if r.error}

    def finalize(self) -> None:
        """Mark the scan as complete and calculate duration."""
        self.completed_at = datetime.now(timezone.utc)
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()


class ScanConfig(BaseModel):
    """Scan configuration and classification policy."""

    scan_mode: ScanMode = Field(default=ScanMode.PASSIVE, description="Default scanner set")
    enabled_scanners: list[ScannerType] | None = Field(
        default=None,
        description="Explicit scanners to run, in order (default: derived from scan_mode)",
    )
    entropy_threshold: float = Field(
        default=3.5,
        ge=0.0,
        le=16.0,
        description="Shannon entropy at or above which a secret is high entropy",
    )
    false_positive_words: list[str] = Field(
        default_factory=lambda: ["basic", "bearer", "token"],
        description="Literal secret values ignored as low-entropy matches",
    )
    timeout: float = Field(default=10.0, gt=0.0, le=300.0, description="Per-request timeout in seconds")
    max_concurrency: int = Field(default=8, ge=1, le=100, description="Concurrent network requests")
    parallel: bool = Field(default=True, description="Run scanners concurrently")
    registry_url: str = Field(default="https://registry.npmjs.org", description="Package registry API")
    registry_frontend_url: str = Field(default="https://www.npmjs.com", description="Registry website")
    user_agent: str = Field(default="JS-Miner/1.0 Static Asset Scanner")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    cookies: dict[str, str] = Field(default_factory=dict, description="Ambient page cookies")
    custom_headers: dict[str, str] = Field(default_factory=dict, description="Ambient request headers")

    @field_validator("registry_url", "registry_frontend_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure registry URLs have a scheme and no trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Registry URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("false_positive_words")
    @classmethod
    def normalize_words(cls, v: list[str]) -> list[str]:
        """Compare false-positive words case-insensitively."""
        return [word.strip().lower() for word in v if word.strip()]

    @property
    def scanners(self) -> list[ScannerType]:
        """Scanners to invoke, in invocation order."""
        if self.enabled_scanners is not None:
            return list(dict.fromkeys(self.enabled_scanners))
        if self.scan_mode == ScanMode.ACTIVE:
            return list(ALL_SCANNERS)
        return list(PASSIVE_SCANNERS)

    @classmethod
    def from_env(cls, **overrides: Any) -> "ScanConfig":
        """
        Build a configuration from JSMINER_* environment variables.

        Explicit keyword overrides win over the environment. Unset
        variables fall back to field defaults.
        """
        env_map = {
            "scan_mode": "JSMINER_SCAN_MODE",
            "entropy_threshold": "JSMINER_ENTROPY_THRESHOLD",
            "timeout": "JSMINER_TIMEOUT",
            "max_concurrency": "JSMINER_MAX_CONCURRENCY",
            "registry_url": "JSMINER_REGISTRY_URL",
            "registry_frontend_url": "JSMINER_REGISTRY_FRONTEND_URL",
            "user_agent": "JSMINER_USER_AGENT",
        }
        values: dict[str, Any] = {}
        for field_name, env_name in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = raw

        words = os.getenv("JSMINER_FALSE_POSITIVE_WORDS")
        if words:
            values["false_positive_words"] = words.split(",")

        verify = os.getenv("JSMINER_VERIFY_SSL")
        if verify:
            values["verify_ssl"] = verify.lower() not in ("0", "false", "no")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
