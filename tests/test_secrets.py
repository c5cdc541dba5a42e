"""Tests for the secrets scanner."""

from __future__ import annotations

import pytest

from jsminer.models import Confidence, ResourceType, ScanConfig, Severity
from jsminer.scanners.secrets import SecretsScanner

HIGH_ENTROPY_BASIC = "c3ZjLWFkbWluOlhrOW1RMnZMN3BSNHda"  # svc-admin:Xk9mQ2vL7pR4wZ
LOW_ENTROPY_BASIC = "dXNlcjp1c2Vy"  # user:user


@pytest.fixture
def scanner(config: ScanConfig) -> SecretsScanner:
    return SecretsScanner(config)


class TestSecretsScanner:
    """Tests for SecretsScanner."""

    @pytest.mark.asyncio
    async def test_high_entropy_secret_is_firm(self, scanner, make_resource, make_context) -> None:
        resource = make_resource('const cfg = {apiKey: "Zx9Qw3Er7Ty1Ui5Op2As"};')

        issues = await scanner.scan(make_context(resource))

        assert len(issues) == 1
        assert issues[0].title == "[JS Miner] Secrets / Credentials"
        assert issues[0].confidence == Confidence.FIRM
        assert issues[0].severity == Severity.MEDIUM
        assert issues[0].matches == ['apiKey: "Zx9Qw3Er7Ty1Ui5Op2As"']
        assert issues[0].resource_url == resource.url

    @pytest.mark.asyncio
    async def test_low_entropy_secret_is_tentative(self, scanner, make_resource, make_context) -> None:
        resource = make_resource('var password = "aaaabbbb1";')

        issues = await scanner.scan(make_context(resource))

        assert [i.confidence for i in issues] == [Confidence.TENTATIVE]
        assert issues[0].matches == ['password = "aaaabbbb1"']

    @pytest.mark.asyncio
    async def test_placeholders_and_short_values_are_dropped(self, scanner, make_resource, make_context) -> None:
        resource = make_resource('a = {token: "token", pwd: "abc", secret: "****"};')

        assert await scanner.scan(make_context(resource)) == []

    @pytest.mark.asyncio
    async def test_high_and_low_evidence_in_separate_issues(self, scanner, make_resource, make_context) -> None:
        content = (
            'headers: {Authorization: "Basic ' + HIGH_ENTROPY_BASIC + '"}\n'
            'other: {Authorization: "Basic ' + LOW_ENTROPY_BASIC + '"}\n'
        )

        issues = await scanner.scan(make_context(make_resource(content)))

        high, low = issues
        assert high.confidence == Confidence.FIRM
        assert high.matches == ['Authorization: "Basic ' + HIGH_ENTROPY_BASIC]
        assert low.confidence == Confidence.TENTATIVE
        assert low.matches == ['Authorization: "Basic ' + LOW_ENTROPY_BASIC]

    @pytest.mark.asyncio
    async def test_duplicate_matches_reported_once(self, scanner, make_resource, make_context) -> None:
        content = 'x = {secret: "Zx9Qw3Er7Ty1Ui5Op2As"}; y = {secret: "Zx9Qw3Er7Ty1Ui5Op2As"};'

        issues = await scanner.scan(make_context(make_resource(content)))

        assert issues[0].matches == ['secret: "Zx9Qw3Er7Ty1Ui5Op2As"']

    @pytest.mark.asyncio
    async def test_json_scanned_css_ignored(self, scanner, make_resource, make_context) -> None:
        json_resource = make_resource(
            '{"client_secret": "Zx9Qw3Er7Ty1Ui5Op2As"}',
            url="https://example.com/config.json",
            type=ResourceType.JSON,
        )
        css_resource = make_resource(
            '.x { --token: "Zx9Qw3Er7Ty1Ui5Op2As"; }',
            url="https://example.com/site.css",
            type=ResourceType.CSS,
        )

        issues = await scanner.scan(make_context(json_resource, css_resource))

        assert [i.resource_url for i in issues] == ["https://example.com/config.json"]

    @pytest.mark.asyncio
    async def test_entropy_threshold_is_configurable(self, make_resource, make_context) -> None:
        scanner = SecretsScanner(ScanConfig(entropy_threshold=5.0))

        issues = await scanner.scan(make_context(make_resource('k = {apiKey: "Zx9Qw3Er7Ty1Ui5Op2As"}')))

        assert [i.confidence for i in issues] == [Confidence.TENTATIVE]


class TestFalsePositiveFilter:
    """Tests for is_not_false_positive."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("hunter22", True),
            ("Bearer", False),
            ("TOKEN", False),
            ("ab*c*d", False),
            ("a b c d e", True),
            ("1234", False),
        ],
    )
    def test_values(self, scanner: SecretsScanner, value: str, expected: bool) -> None:
        assert scanner.is_not_false_positive(value) is expected
