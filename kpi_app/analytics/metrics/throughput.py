"""Throughput: completed tasks per week over the observed resolution span."""

from __future__ import annotations

from collections.abc import Sequence

from kpi_app.core.models import IssueModel

from .rounding import round_half_up

SECONDS_PER_WEEK = 7 * 86400.0


def throughput(completed: Sequence[IssueModel]) -> float:
    """Completed issues divided by the weeks between first and last resolution.

    The span is floored at one week, so a burst of resolutions on the same day
    reports the raw count rather than an inflated rate.
    """
    if not completed:
        return 0.0
    resolved = sorted(i.resolution_date for i in completed if i.resolution_date is not None)
    if not resolved:
        return 0.0
    weeks = (resolved[-1] - resolved[0]).total_seconds() / SECONDS_PER_WEEK
    weeks = max(weeks, 1.0)
    return round_half_up(len(completed) / weeks, 2)
