from kpi_app.core.models import ChangeImpact, CohortOutcome, EDDDeliveryMetrics, KPIDistribution, KPIMetrics
from kpi_app.features.kpi_overview.context import (
    build_overview_context,
    cohort_frame,
    distribution_frame,
    on_time_rating,
    target_alignment,
)
from kpi_app.visual.charts import change_impact_bars, distribution_donut, issue_type_bars


def _kpis():
    edd = EDDDeliveryMetrics(
        total_with_edd=4,
        delivered_on_time=2,
        delivered_late=2,
        on_time_percentage=50.0,
        issues_with_changes=2,
        issues_without_changes=2,
        change_impact_on_delivery=ChangeImpact(
            no_changes=CohortOutcome(on_time=2, late=0, percentage=100.0),
            with_changes=CohortOutcome(on_time=0, late=2, percentage=0.0),
        ),
    )
    return KPIMetrics(
        distribution=KPIDistribution(maintenance=33.0, new_product=67.0),
        total_tasks=6,
        completed_tasks=4,
        maintenance_types={"Bug": 2},
        new_product_types={"Story": 4},
        edd_delivery_metrics=edd,
    )


def test_target_alignment_within_tolerance():
    assert target_alignment(KPIDistribution(33.0, 67.0)).on_target
    assert target_alignment(KPIDistribution(35.0, 65.0)).on_target


def test_target_alignment_outside_tolerance():
    alignment = target_alignment(KPIDistribution(40.0, 60.0))
    assert not alignment.maintenance_ok
    assert not alignment.new_product_ok
    assert not alignment.on_target


def test_on_time_rating_bands():
    assert on_time_rating(80.0) == "good"
    assert on_time_rating(79.99) == "warning"
    assert on_time_rating(60.0) == "warning"
    assert on_time_rating(59.0) == "poor"


def test_frames():
    dist = distribution_frame(KPIDistribution(30.0, 70.0))
    assert list(dist["category"]) == ["New Product", "Maintenance"]
    cohorts = cohort_frame(_kpis().edd_delivery_metrics)
    late_with = cohorts[(cohorts["cohort"] == "With EDD changes") & (cohorts["outcome"] == "Late")]
    assert late_with["count"].item() == 2


def test_build_overview_context():
    ctx = build_overview_context(_kpis())
    assert ctx.show_delivery
    assert ctx.on_time_rating == "poor"
    assert ctx.alignment.on_target
    assert len(ctx.type_frame) == 2


def test_empty_kpis_hide_delivery():
    ctx = build_overview_context(KPIMetrics())
    assert not ctx.show_delivery
    assert distribution_donut(ctx.distribution_frame) is None
    assert issue_type_bars(ctx.type_frame) is None
    assert change_impact_bars(ctx.cohort_frame) is None


def test_charts_build():
    ctx = build_overview_context(_kpis())
    for chart in (
        distribution_donut(ctx.distribution_frame),
        issue_type_bars(ctx.type_frame),
        change_impact_bars(ctx.cohort_frame),
    ):
        assert chart is not None
        assert chart.to_dict()


def test_page_order():
    from kpi_app.app import ordered_pages

    assert ordered_pages(["Setup / Connection", "Zeta", "KPI Overview", "Alpha"]) == [
        "KPI Overview",
        "Setup / Connection",
        "Alpha",
        "Zeta",
    ]
