"""
Resource collection and enrichment.

Builds the page's resource list (from a collector JSON document or from
page HTML) and enriches every resource with its text and bytes before
any scanner runs.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from urllib.parse import urldefrag, urljoin

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jsminer import patterns
from jsminer.models import Resource, ResourceType, ScanConfig, ScanContext
from jsminer.utils import open_client, path_from_url

logger = structlog.get_logger(__name__)


class CollectionError(Exception):
    """Raised when a collected page document cannot be loaded."""


class CollectedResource(BaseModel):
    """A resource as reported by the page collector, before enrichment."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(min_length=1)
    type: ResourceType
    is_inline: bool = Field(default=False, alias="isInline")
    content: str | None = None
    path: str | None = None


class CollectedPage(BaseModel):
    """Collector output: the page, its referrer and its resources."""

    model_config = ConfigDict(populate_by_name=True)

    page_url: str = Field(default="", alias="pageUrl")
    referrer: str = ""
    resources: list[CollectedResource] = Field(default_factory=list)


def load_collected_page(path: str | Path) -> CollectedPage:
    """
    Read a ``{pageUrl, referrer, resources}`` JSON document.

    Raises:
        CollectionError: If the file is unreadable or not a valid document
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
        return CollectedPage.model_validate(json.loads(raw))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise CollectionError(f"Cannot load collected page from {path}: {e}") from e


def _attributes(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for match in patterns.TAG_ATTRIBUTE.finditer(raw):
        value = match.group("dq") or match.group("sq") or match.group("bare") or ""
        attrs[match.group("name").lower()] = value
    return attrs


def collect_from_html(page_url: str, html: str, referrer: str = "") -> CollectedPage:
    """
    List the scripts and stylesheets of a page.

    External URLs are resolved against the page and deduplicated.
    Inline bodies are numbered in document order and given stable
    ``/inline/...`` paths.
    """
    resources: list[CollectedResource] = []
    seen: set[str] = set()
    page_base, _ = urldefrag(page_url)
    script_index = json_index = style_index = 0

    for match in patterns.SCRIPT_TAG.finditer(html):
        attrs = _attributes(match.group("attrs"))
        resource_type = ResourceType.JSON if "json" in attrs.get("type", "").lower() else ResourceType.JS
        src = attrs.get("src")
        if src:
            url = urljoin(page_url, src)
            if url not in seen:
                seen.add(url)
                resources.append(CollectedResource(url=url, type=resource_type))
        elif match.group("body").strip():
            script_index += 1
            if resource_type == ResourceType.JSON:
                json_index += 1
                path = f"/inline/json-{json_index}.json"
            else:
                path = f"/inline/script-{script_index}.js"
            resources.append(
                CollectedResource(
                    url=f"{page_base}#inline-script-{script_index}",
                    type=resource_type,
                    is_inline=True,
                    content=match.group("body"),
                    path=path,
                )
            )

    for match in patterns.LINK_TAG.finditer(html):
        attrs = _attributes(match.group("attrs"))
        if attrs.get("rel", "").lower() != "stylesheet" or not attrs.get("href"):
            continue
        url = urljoin(page_url, attrs["href"])
        if url not in seen:
            seen.add(url)
            resources.append(CollectedResource(url=url, type=ResourceType.CSS))

    for match in patterns.STYLE_TAG.finditer(html):
        if match.group("body").strip():
            style_index += 1
            resources.append(
                CollectedResource(
                    url=f"{page_base}#inline-style-{style_index}",
                    type=ResourceType.CSS,
                    is_inline=True,
                    content=match.group("body"),
                    path=f"/inline/style-{style_index}.css",
                )
            )

    logger.info("resources_collected", page=page_url, count=len(resources))
    return CollectedPage(page_url=page_url, referrer=referrer, resources=resources)


class ResourceEnricher:
    """
    Fetches resource bodies so scanners see a complete, immutable list.

    Inline resources are converted locally; external ones are fetched
    concurrently with the page's ambient credentials. A failed fetch
    leaves the resource empty rather than dropping it.
    """

    def __init__(self, config: ScanConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.client = client

    async def enrich(self, page: CollectedPage) -> ScanContext:
        """Return the scan context for a collected page."""
        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        async with open_client(self.config, self.client) as client:

            async def bounded(resource: CollectedResource) -> Resource:
                async with semaphore:
                    return await self._enrich_resource(client, resource)

            resources = await asyncio.gather(*(bounded(r) for r in page.resources))

        logger.info(
            "resources_enriched",
            page=page.page_url,
            count=len(resources),
            empty=sum(1 for r in resources if not r.raw_bytes),
        )
        return ScanContext(page_url=page.page_url, referrer=page.referrer, resources=list(resources))

    async def _enrich_resource(self, client: httpx.AsyncClient, resource: CollectedResource) -> Resource:
        if resource.is_inline:
            content = resource.content or ""
            return Resource(
                url=resource.url,
                type=resource.type,
                is_inline=True,
                content=content,
                raw_bytes=content.encode("utf-8"),
                path=resource.path or path_from_url(resource.url, resource.type.fallback_name),
            )

        path = resource.path or path_from_url(resource.url, resource.type.fallback_name)
        try:
            response = await client.get(resource.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("resource_fetch_failed", url=resource.url, error=str(e))
            return Resource(url=resource.url, type=resource.type, path=path)

        if not response.is_success:
            logger.debug("resource_unavailable", url=resource.url, status=response.status_code)
            return Resource(url=resource.url, type=resource.type, path=path)

        return Resource(
            url=resource.url,
            type=resource.type,
            content=response.text,
            raw_bytes=response.content,
            path=path,
        )
