"""
Source map reconstruction shared by the inline and active scanners.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import structlog

from jsminer.utils import sanitize_path

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceEntry:
    """One original file recovered from a source map."""

    path: str
    content: str


def clean_source_name(name: str) -> str:
    """Drop any query string and sanitize every path segment."""
    return sanitize_path(name.split("?", 1)[0]) or "source.js"


def extract_sources_from_map(map_content: str) -> list[SourceEntry]:
    """
    Rebuild the original files listed in a source map.

    ``sources`` and ``sourcesContent`` are read in parallel by index.
    Missing names become ``source_<i>.js`` and missing content an empty
    string. Malformed documents yield no entries.

    Args:
        map_content: Raw source map JSON text

    Returns:
        Recovered files in source order
    """
    try:
        data = json.loads(map_content)
    except (json.JSONDecodeError, TypeError, ValueError):
        return []
    if not isinstance(data, dict):
        return []

    sources = data.get("sources") or []
    contents = data.get("sourcesContent") or []
    if not isinstance(sources, list):
        return []
    if not isinstance(contents, list):
        contents = []

    entries: list[SourceEntry] = []
    for index, source in enumerate(sources):
        raw_name = source if isinstance(source, str) and source else f"source_{index}.js"
        name = clean_source_name(raw_name)
        content = contents[index] if index < len(contents) else None
        entries.append(
            SourceEntry(
                path=name[1:] if name.startswith("/") else name,
                content=content if isinstance(content, str) else "",
            )
        )

    logger.debug("source_map_extracted", files=len(entries))
    return entries
