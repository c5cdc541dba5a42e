"""
Archive assembly for issue download bundles.

Resolves path collisions deterministically, prefixes entries with the
bundle root directory and writes bundles as zip files.
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Iterable

import structlog

from jsminer.models import DownloadBundle, DownloadEntry, Issue
from jsminer.utils import now_timestamp, sanitize_path_segment

logger = structlog.get_logger(__name__)


def split_extension(path: str) -> tuple[str, str]:
    """
    Split a path before the file name's last dot.

    Dots in directory names are ignored: ``a.b/c`` has no extension.
    """
    filename = path.rsplit("/", 1)[-1]
    dot = filename.rfind(".")
    if dot == -1:
        return path, ""
    ext = filename[dot:]
    return path[: len(path) - len(ext)], ext


def ensure_unique_paths(entries: Iterable[DownloadEntry]) -> list[DownloadEntry]:
    """
    Rename colliding paths by inserting ``_<n>`` before the extension.

    The first occurrence keeps its path; later ones get the smallest
    counter that is still free.
    """
    seen: set[str] = set()
    unique: list[DownloadEntry] = []
    for entry in entries:
        path = entry.path
        base, ext = split_extension(entry.path)
        counter = 1
        while path in seen:
            path = f"{base}_{counter}{ext}"
            counter += 1
        seen.add(path)
        unique.append(entry if path == entry.path else DownloadEntry(path=path, data=entry.data))
    return unique


def assemble_bundle(bundle: DownloadBundle) -> list[DownloadEntry]:
    """
    Produce the archive layout of a bundle.

    Returns:
        Entries with unique paths rooted at ``<root_dir>/``
    """
    relative = [DownloadEntry(path=entry.path.lstrip("/"), data=entry.data) for entry in bundle.entries]
    return [
        DownloadEntry(path=f"{bundle.root_dir}/{entry.path}", data=entry.data)
        for entry in ensure_unique_paths(relative)
    ]


def write_zip(bundle: DownloadBundle, output_dir: str | Path) -> Path:
    """
    Write a bundle to ``<output_dir>/<zip_name>``.

    Existing archives are never overwritten: a taken name gets the
    smallest free ``_<n>`` counter before its extension.

    Args:
        bundle: Bundle to archive
        output_dir: Destination directory, created when missing

    Returns:
        Path of the written archive
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = _free_target(directory, bundle.zip_name)

    entries = assemble_bundle(bundle)
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for entry in entries:
            zf.writestr(entry.path, entry.data)

    logger.info("archive_written", path=str(target), files=len(entries))
    return target


def _free_target(directory: Path, zip_name: str) -> Path:
    target = directory / zip_name
    base, ext = split_extension(zip_name)
    counter = 1
    while target.exists():
        target = directory / f"{base}_{counter}{ext}"
        counter += 1
    return target


def export_downloads(issues: Iterable[Issue], output_dir: str | Path) -> list[Path]:
    """Write the bundle of every issue that carries one."""
    return [write_zip(issue.download, output_dir) for issue in issues if issue.download]


def build_bundle(kind: str, host: str, entries: list[DownloadEntry], timestamp: int | None = None) -> DownloadBundle:
    """
    Name a bundle after its origin and capture time.

    Args:
        kind: Producer label (``inline``, ``active``, ``dump``)
        host: Host the files were recovered from
        entries: Files of the bundle
        timestamp: Capture time in milliseconds (default: now)

    Returns:
        Bundle named ``JS-Miner-<kind>-<host>-<ts>.zip`` rooted at ``<host>-<ts>``
    """
    ts = now_timestamp() if timestamp is None else timestamp
    safe_host = sanitize_path_segment(host) or kind
    return DownloadBundle(
        zip_name=f"JS-Miner-{kind}-{safe_host}-{ts}.zip",
        root_dir=f"{safe_host}-{ts}",
        entries=entries,
    )
