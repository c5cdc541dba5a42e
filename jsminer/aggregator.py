"""
Issue aggregation across scanner results.
"""

from __future__ import annotations

from typing import Iterable

from jsminer.models import Issue, ScanResult


def flatten_issues(results: Iterable[ScanResult]) -> list[Issue]:
    """
    Flatten per-scanner results into one ordered issue list.

    Scanner invocation order and each issue's match order are kept;
    every issue is tagged with the scanner that produced it.
    """
    return [
        issue.model_copy(update={"scanner": result.scanner})
        for result in results
        for issue in result.issues
    ]
