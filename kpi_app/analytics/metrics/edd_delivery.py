"""Delivery against the expected development delivery date (EDD).

Only completed issues that carry both a target delivery date and a resolution
date take part. Each one is classified on time (resolved on or before the
target) or late, and split into a "no changes" / "with changes" cohort by the
estimated number of target-date revisions. The cohort split shows whether
revised targets go together with missed deliveries.

The revision count is an estimate: no changelog is consulted. Estimation is
kept behind :class:`ChangeEstimator` so a changelog-backed implementation can
replace :class:`HeuristicChangeEstimator` without touching the aggregation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import pandas as pd

from kpi_app.core.config import (
    EDD_CHANGE_AGE_THRESHOLDS,
    EDD_CHANGE_STATUS_KEYWORDS,
    EDD_CHANGE_TYPE_KEYWORDS,
)
from kpi_app.core.models import ChangeImpact, CohortOutcome, EDDDeliveryMetrics, IssueModel

from .categorization import categorize
from .cycle_time import cycle_time
from .rounding import percentage, round_half_up

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


class ChangeEstimator(Protocol):
    def estimate(self, issue: IssueModel) -> int:
        """Return the (non-negative) number of target-date revisions for ``issue``."""
        ...


@dataclass(frozen=True, slots=True)
class HeuristicChangeEstimator:
    """Estimate target-date revisions from cycle time, issue type and status.

    Every age threshold the cycle time exceeds adds one (so 65 days scores 2),
    an issue type containing one of ``type_keywords`` adds one, and a status
    containing one of ``status_keywords`` adds one. Keyword matching is
    case-insensitive substring matching.
    """

    age_thresholds: Sequence[int] = tuple(EDD_CHANGE_AGE_THRESHOLDS)
    type_keywords: Sequence[str] = tuple(EDD_CHANGE_TYPE_KEYWORDS)
    status_keywords: Sequence[str] = tuple(EDD_CHANGE_STATUS_KEYWORDS)

    def estimate(self, issue: IssueModel) -> int:
        age = cycle_time(issue) or 0.0
        changes = sum(1 for threshold in self.age_thresholds if age > threshold)
        issue_type = (issue.issuetype or "").lower()
        if any(word in issue_type for word in self.type_keywords):
            changes += 1
        status = (issue.status or "").lower()
        if any(word in status for word in self.status_keywords):
            changes += 1
        return changes


DEFAULT_ESTIMATOR = HeuristicChangeEstimator()


def is_delivered_on_time(resolution: datetime, target: datetime) -> bool:
    """On time when resolved no later than the target (equality counts)."""
    return resolution <= target


def days_late(resolution: datetime, target: datetime) -> int:
    """Whole days past the target, rounded up; 0 for on-time deliveries."""
    delta = (resolution - target).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(delta))


def qualifying_issues(completed: Iterable[IssueModel]) -> list[IssueModel]:
    """Issues with both a target delivery date and a resolution date."""
    return [
        i
        for i in completed
        if i.target_delivery_date is not None and i.resolution_date is not None
    ]


def calculate_edd_delivery_metrics(
    completed: Iterable[IssueModel],
    estimator: ChangeEstimator | None = None,
) -> EDDDeliveryMetrics:
    estimator = estimator or DEFAULT_ESTIMATOR
    completed = list(completed)
    with_edd = qualifying_issues(completed)
    logger.debug("EDD analysis: %d of %d completed issues have a target date", len(with_edd), len(completed))
    if not with_edd:
        return EDDDeliveryMetrics()

    no_changes = CohortOutcome()
    with_changes = CohortOutcome()
    total_changes = 0
    for issue in with_edd:
        changes = estimator.estimate(issue)
        total_changes += changes
        cohort = with_changes if changes > 0 else no_changes
        if is_delivered_on_time(issue.resolution_date, issue.target_delivery_date):
            cohort.on_time += 1
        else:
            cohort.late += 1

    no_changes.percentage = percentage(no_changes.on_time, no_changes.total)
    with_changes.percentage = percentage(with_changes.on_time, with_changes.total)
    on_time = no_changes.on_time + with_changes.on_time
    late = no_changes.late + with_changes.late

    return EDDDeliveryMetrics(
        total_with_edd=len(with_edd),
        delivered_on_time=on_time,
        delivered_late=late,
        on_time_percentage=percentage(on_time, len(with_edd)),
        average_edd_changes=round_half_up(total_changes / len(with_edd), 2),
        issues_with_changes=with_changes.total,
        issues_without_changes=no_changes.total,
        change_impact_on_delivery=ChangeImpact(no_changes=no_changes, with_changes=with_changes),
    )


def edd_analysis_details(
    completed: Iterable[IssueModel],
    estimator: ChangeEstimator | None = None,
) -> pd.DataFrame:
    """Per-issue delivery rows for the qualifying subset of ``completed``."""
    estimator = estimator or DEFAULT_ESTIMATOR
    columns = [
        "key",
        "original_edd",
        "final_edd",
        "actual_delivery",
        "edd_changes",
        "delivered_on_time",
        "days_late",
        "issuetype",
        "category",
    ]
    rows = []
    for issue in qualifying_issues(completed):
        target = issue.target_delivery_date
        resolution = issue.resolution_date
        rows.append(
            {
                "key": issue.key,
                "original_edd": issue.target_delivery_raw,
                # Without changelog data the final target equals the original one.
                "final_edd": issue.target_delivery_raw,
                "actual_delivery": resolution,
                "edd_changes": estimator.estimate(issue),
                "delivered_on_time": is_delivered_on_time(resolution, target),
                "days_late": days_late(resolution, target),
                "issuetype": issue.issuetype,
                "category": categorize(issue),
            }
        )
    return pd.DataFrame(rows, columns=columns)
