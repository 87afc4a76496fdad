"""Work distribution and issue-type breakdown by category."""

from __future__ import annotations

from collections.abc import Collection, Sequence

import pandas as pd

from kpi_app.analytics.metrics.categorization import is_maintenance
from kpi_app.analytics.metrics.rounding import percentage
from kpi_app.core.config import (
    CATEGORY_LABELS,
    CATEGORY_MAINTENANCE,
    CATEGORY_NEW_PRODUCT,
    MAINTENANCE_ISSUE_TYPES,
)
from kpi_app.core.models import IssueModel, KPIDistribution, KPIMetrics


def distribution(
    issues: Sequence[IssueModel],
    maintenance_types: Collection[str] = MAINTENANCE_ISSUE_TYPES,
) -> KPIDistribution:
    total = len(issues)
    if total == 0:
        return KPIDistribution()
    maintenance = sum(1 for i in issues if is_maintenance(i, maintenance_types))
    return KPIDistribution(
        maintenance=percentage(maintenance, total),
        new_product=percentage(total - maintenance, total),
    )


def group_by_type(
    issues: Sequence[IssueModel],
    maintenance_types: Collection[str] = MAINTENANCE_ISSUE_TYPES,
) -> tuple[dict[str, int], dict[str, int]]:
    """Count issues per type name within each category.

    Type names pass through verbatim: "Bug" and "bug " are different keys.
    """
    maintenance_counts: dict[str, int] = {}
    new_product_counts: dict[str, int] = {}
    for issue in issues:
        if is_maintenance(issue, maintenance_types):
            bucket = maintenance_counts
        else:
            bucket = new_product_counts
        bucket[issue.issuetype] = bucket.get(issue.issuetype, 0) + 1
    return maintenance_counts, new_product_counts


def type_breakdown_frame(metrics: KPIMetrics) -> pd.DataFrame:
    """Flatten the per-category type counters into chartable rows."""
    rows = []
    for category, counts in (
        (CATEGORY_NEW_PRODUCT, metrics.new_product_types),
        (CATEGORY_MAINTENANCE, metrics.maintenance_types),
    ):
        for issuetype, count in counts.items():
            rows.append(
                {
                    "issuetype": issuetype,
                    "category": category,
                    "category_label": CATEGORY_LABELS[category],
                    "count": int(count),
                }
            )
    return pd.DataFrame(rows, columns=["issuetype", "category", "category_label", "count"])
