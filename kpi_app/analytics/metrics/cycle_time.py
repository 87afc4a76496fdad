"""Cycle time metrics: creation to resolution, in fractional days."""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from kpi_app.core.models import IssueModel

from .categorization import categorize
from .rounding import round_half_up

SECONDS_PER_DAY = 86400.0


def cycle_time(issue: IssueModel) -> float | None:
    """Days from ``created`` to ``resolution_date`` (2 decimals), or None if unresolved."""
    if issue.resolution_date is None or issue.created is None:
        return None
    days = (issue.resolution_date - issue.created).total_seconds() / SECONDS_PER_DAY
    return round_half_up(days, 2)


def average_cycle_time(issues: Iterable[IssueModel]) -> str:
    """Mean cycle time rounded half-up to one decimal; ``"0"`` when nothing is resolved."""
    times = [t for t in (cycle_time(i) for i in issues) if t is not None]
    if not times:
        return "0"
    return f"{round_half_up(sum(times) / len(times), 1):.1f}"


def cycle_time_details(issues: Iterable[IssueModel]) -> pd.DataFrame:
    columns = ["key", "cycle_time", "issuetype", "category"]
    rows = []
    for issue in issues:
        ct = cycle_time(issue)
        if ct is None:
            continue
        rows.append(
            {
                "key": issue.key,
                "cycle_time": ct,
                "issuetype": issue.issuetype,
                "category": categorize(issue),
            }
        )
    return pd.DataFrame(rows, columns=columns)
