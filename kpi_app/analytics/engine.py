"""KPI engine: combines the individual metrics into one KPIMetrics result.

All functions are pure. The caller decides which issues count as completed;
the engine never re-derives that set from ``all_issues``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

import pytz

from kpi_app.core.models import IssueModel, KPIMetrics

from .aggregations.distribution import distribution, group_by_type
from .metrics.cycle_time import average_cycle_time
from .metrics.edd_delivery import ChangeEstimator, calculate_edd_delivery_metrics
from .metrics.throughput import throughput

logger = logging.getLogger(__name__)


def empty_kpis() -> KPIMetrics:
    return KPIMetrics()


def calculate_kpis(
    all_issues: Sequence[IssueModel],
    completed_issues: Sequence[IssueModel],
    estimator: ChangeEstimator | None = None,
) -> KPIMetrics:
    if not all_issues:
        return empty_kpis()

    maintenance_types, new_product_types = group_by_type(all_issues)
    metrics = KPIMetrics(
        distribution=distribution(all_issues),
        avg_cycle_time=average_cycle_time(completed_issues),
        total_tasks=len(all_issues),
        completed_tasks=len(completed_issues),
        throughput=throughput(completed_issues),
        maintenance_types=maintenance_types,
        new_product_types=new_product_types,
        edd_delivery_metrics=calculate_edd_delivery_metrics(completed_issues, estimator),
    )
    logger.debug(
        "KPIs computed: total=%d completed=%d throughput=%.2f",
        metrics.total_tasks,
        metrics.completed_tasks,
        metrics.throughput,
    )
    return metrics


def with_edd_override(
    metrics: KPIMetrics,
    edd_issues: Sequence[IssueModel],
    estimator: ChangeEstimator | None = None,
) -> KPIMetrics:
    """Return a copy of ``metrics`` whose EDD block comes from ``edd_issues``.

    Used when delivery should be judged on a narrower scope (e.g. a single team)
    than the rest of the KPIs.
    """
    return replace(metrics, edd_delivery_metrics=calculate_edd_delivery_metrics(edd_issues, estimator))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value


def calculate_kpis_for_period(
    all_issues: Sequence[IssueModel],
    completed_issues: Sequence[IssueModel],
    start: datetime,
    end: datetime,
    estimator: ChangeEstimator | None = None,
) -> KPIMetrics:
    """KPIs for issues created (all) or resolved (completed) within ``[start, end]``.

    Naive bounds are taken as UTC.
    """
    start, end = _as_utc(start), _as_utc(end)
    in_period = [i for i in all_issues if i.created is not None and start <= i.created <= end]
    resolved_in_period = [
        i for i in completed_issues if i.resolution_date is not None and start <= i.resolution_date <= end
    ]
    return calculate_kpis(in_period, resolved_in_period, estimator)
