"""Pure helpers to build the KPI overview context (no Streamlit)."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from kpi_app.analytics.aggregations.distribution import type_breakdown_frame
from kpi_app.core.config import (
    CATEGORY_LABELS,
    CATEGORY_MAINTENANCE,
    CATEGORY_NEW_PRODUCT,
    MAINTENANCE_TARGET_PCT,
    NEW_PRODUCT_TARGET_PCT,
    ON_TIME_GOOD_PCT,
    ON_TIME_WARNING_PCT,
    TARGET_TOLERANCE_PCT,
)
from kpi_app.core.models import EDDDeliveryMetrics, KPIDistribution, KPIMetrics


@dataclass(slots=True)
class TargetAlignment:
    maintenance_ok: bool
    new_product_ok: bool

    @property
    def on_target(self) -> bool:
        return self.maintenance_ok and self.new_product_ok


@dataclass(slots=True)
class OverviewContext:
    kpis: KPIMetrics
    distribution_frame: pd.DataFrame
    type_frame: pd.DataFrame
    cohort_frame: pd.DataFrame
    alignment: TargetAlignment
    on_time_rating: str
    show_delivery: bool


def target_alignment(
    dist: KPIDistribution,
    maintenance_target: float = MAINTENANCE_TARGET_PCT,
    new_product_target: float = NEW_PRODUCT_TARGET_PCT,
    tolerance: float = TARGET_TOLERANCE_PCT,
) -> TargetAlignment:
    return TargetAlignment(
        maintenance_ok=abs(dist.maintenance - maintenance_target) <= tolerance,
        new_product_ok=abs(dist.new_product - new_product_target) <= tolerance,
    )


def on_time_rating(pct: float) -> str:
    if pct >= ON_TIME_GOOD_PCT:
        return "good"
    if pct >= ON_TIME_WARNING_PCT:
        return "warning"
    return "poor"


def distribution_frame(dist: KPIDistribution) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"category": CATEGORY_LABELS[CATEGORY_NEW_PRODUCT], "share": dist.new_product},
            {"category": CATEGORY_LABELS[CATEGORY_MAINTENANCE], "share": dist.maintenance},
        ]
    )


def cohort_frame(edd: EDDDeliveryMetrics) -> pd.DataFrame:
    """Long-form on-time/late counts per change cohort."""
    impact = edd.change_impact_on_delivery
    rows = []
    for label, outcome in (("No EDD changes", impact.no_changes), ("With EDD changes", impact.with_changes)):
        rows.append({"cohort": label, "outcome": "On time", "count": outcome.on_time, "percentage": outcome.percentage})
        rows.append({"cohort": label, "outcome": "Late", "count": outcome.late, "percentage": outcome.percentage})
    return pd.DataFrame(rows)


def build_overview_context(kpis: KPIMetrics) -> OverviewContext:
    edd = kpis.edd_delivery_metrics
    return OverviewContext(
        kpis=kpis,
        distribution_frame=distribution_frame(kpis.distribution),
        type_frame=type_breakdown_frame(kpis),
        cohort_frame=cohort_frame(edd),
        alignment=target_alignment(kpis.distribution),
        on_time_rating=on_time_rating(edd.on_time_percentage),
        show_delivery=edd.total_with_edd > 0,
    )
