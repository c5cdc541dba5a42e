"""
Secrets Scanner.

Detects hard-coded credentials in JavaScript and JSON assets and splits
them by Shannon entropy into firm and tentative evidence.
"""

from __future__ import annotations

import re

from jsminer.models import Confidence, Issue, Resource, ResourceType, ScanContext, ScannerType, Severity
from jsminer.patterns import HTTP_BASIC_AUTH, SECRETS
from jsminer.scanners.base import BaseScanner
from jsminer.utils import UniqueCollector, decode_base64, is_high_entropy, is_valid_base64

_MASK_RE = re.compile(r"[\s*]")


class SecretsScanner(BaseScanner):
    """
    Scanner for secrets and credentials.

    Detects:
    - Quoted key/value assignments whose key names a credential
    - HTTP Basic authorization headers (scored on the decoded credential)

    High-entropy values are reported with FIRM confidence. Low-entropy
    values are kept as TENTATIVE evidence unless they are too short or
    a known placeholder word.
    """

    scanner_type = ScannerType.SECRETS

    TITLE = "[JS Miner] Secrets / Credentials"

    async def scan(self, context: ScanContext) -> list[Issue]:
        """Scan JavaScript and JSON resources for secrets."""
        issues: list[Issue] = []
        for resource in context.of_type(ResourceType.JS, ResourceType.JSON):
            issues.extend(self._scan_resource(resource))
        return issues

    def _scan_resource(self, resource: Resource) -> list[Issue]:
        content = resource.content
        high = UniqueCollector()
        low = UniqueCollector()

        for match in SECRETS.finditer(content):
            secret = match.group("secret")
            if not secret:
                continue
            if self._is_high_entropy(secret):
                high.add(match.group(0))
            elif self.is_not_false_positive(secret):
                low.add(match.group(0))

        for match in HTTP_BASIC_AUTH.finditer(content):
            credential = match.group("credential")
            if is_valid_base64(credential) and self._is_high_entropy(decode_base64(credential)):
                high.add(match.group(0))
            elif self.is_not_false_positive(credential):
                low.add(match.group(0))

        issues: list[Issue] = []
        if high:
            issues.append(
                self._create_issue(
                    title=self.TITLE,
                    description="The following secrets (with High entropy) were found in a static file.",
                    resource_url=resource.url,
                    matches=high,
                    severity=Severity.MEDIUM,
                    confidence=Confidence.FIRM,
                )
            )
        if low:
            issues.append(
                self._create_issue(
                    title=self.TITLE,
                    description="The following secrets (with Low entropy) were found in a static file.",
                    resource_url=resource.url,
                    matches=low,
                    severity=Severity.MEDIUM,
                    confidence=Confidence.TENTATIVE,
                )
            )

        if issues:
            self.logger.debug("secrets_found", url=resource.url, high=len(high), low=len(low))
        return issues

    def _is_high_entropy(self, value: str) -> bool:
        return is_high_entropy(value, self.config.entropy_threshold)

    def is_not_false_positive(self, secret: str) -> bool:
        """
        Keep a low-entropy value as evidence.

        Whitespace and ``*`` masking are ignored; what remains must be
        longer than four characters and not a known placeholder word.
        """
        cleaned = _MASK_RE.sub("", secret)
        if len(cleaned) <= 4:
            return False
        return cleaned.lower() not in self.config.false_positive_words
