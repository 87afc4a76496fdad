"""KPI overview page: work distribution, flow metrics and EDD delivery."""

from __future__ import annotations

import logging

import streamlit as st

from kpi_app.analytics.metrics.edd_delivery import edd_analysis_details
from kpi_app.app import register_page
from kpi_app.core.config import MAINTENANCE_TARGET_PCT, NEW_PRODUCT_TARGET_PCT
from kpi_app.core.jira_client import JiraRequestError
from kpi_app.core.service import DashboardData, IssueService
from kpi_app.features.kpi_overview.context import OverviewContext, build_overview_context
from kpi_app.visual.charts import change_impact_bars, distribution_donut, issue_type_bars
from kpi_app.visual.progress import ProgressReporter

logger = logging.getLogger(__name__)

RATING_BADGES = {"good": "🟢", "warning": "🟠", "poor": "🔴"}


def _render_distribution(ctx: OverviewContext) -> None:
    st.subheader("Work distribution")
    chart = distribution_donut(ctx.distribution_frame)
    if chart is None:
        st.info("No issues in scope.")
    else:
        st.altair_chart(chart, use_container_width=True)
    dist = ctx.kpis.distribution
    c1, c2 = st.columns(2)
    c1.metric("New Product", f"{dist.new_product:.1f}%")
    c2.metric("Maintenance", f"{dist.maintenance:.1f}%")


def _render_key_metrics(ctx: OverviewContext) -> None:
    st.subheader("Key metrics")
    k = ctx.kpis
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Avg cycle time (days)", k.avg_cycle_time)
    c2.metric("Total tasks", k.total_tasks)
    c3.metric("Completed tasks", k.completed_tasks)
    c4.metric("Throughput (tasks/week)", k.throughput)


def _render_issue_types(ctx: OverviewContext) -> None:
    st.subheader("Issue types")
    chart = issue_type_bars(ctx.type_frame)
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    left, right = st.columns(2)
    k = ctx.kpis
    with left:
        st.markdown(f"**New Product** ({sum(k.new_product_types.values())} tasks)")
        for issuetype, count in k.new_product_types.items():
            st.write(f"{issuetype}: {count}")
    with right:
        st.markdown(f"**Maintenance** ({sum(k.maintenance_types.values())} tasks)")
        for issuetype, count in k.maintenance_types.items():
            st.write(f"{issuetype}: {count}")


def _render_target(ctx: OverviewContext) -> None:
    st.subheader(f"Target analysis {MAINTENANCE_TARGET_PCT:.0f}/{NEW_PRODUCT_TARGET_PCT:.0f}")
    dist = ctx.kpis.distribution
    c1, c2 = st.columns(2)
    c1.metric(
        f"Maintenance (target {MAINTENANCE_TARGET_PCT:.0f}%)",
        f"{dist.maintenance:.1f}%",
        delta=f"{dist.maintenance - MAINTENANCE_TARGET_PCT:+.1f} pp",
        delta_color="off" if ctx.alignment.maintenance_ok else "inverse",
    )
    c2.metric(
        f"New Product (target {NEW_PRODUCT_TARGET_PCT:.0f}%)",
        f"{dist.new_product:.1f}%",
        delta=f"{dist.new_product - NEW_PRODUCT_TARGET_PCT:+.1f} pp",
        delta_color="off" if ctx.alignment.new_product_ok else "normal",
    )
    if ctx.alignment.on_target:
        st.success("The team works in line with the target split.")
    else:
        st.warning("The split deviates from the target; worth reviewing why.")


def _render_delivery(ctx: OverviewContext, data: DashboardData) -> None:
    st.subheader("EDD delivery")
    edd = ctx.kpis.edd_delivery_metrics
    c1, c2, c3, c4 = st.columns(4)
    c1.metric(f"{RATING_BADGES[ctx.on_time_rating]} On time", f"{edd.on_time_percentage:.1f}%")
    c2.metric("Issues with EDD", edd.total_with_edd)
    c3.metric("Delivered on time", edd.delivered_on_time)
    c4.metric("Delivered late", edd.delivered_late)

    chart = change_impact_bars(ctx.cohort_frame)
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    impact = edd.change_impact_on_delivery
    left, right = st.columns(2)
    left.write(
        f"Without EDD changes: {impact.no_changes.percentage:.1f}% on time "
        f"({impact.no_changes.on_time}/{impact.no_changes.total})"
    )
    right.write(
        f"With EDD changes: {impact.with_changes.percentage:.1f}% on time "
        f"({impact.with_changes.on_time}/{impact.with_changes.total})"
    )
    st.caption(
        f"Average estimated EDD changes: {edd.average_edd_changes:.1f}. "
        "Change counts are estimated from cycle time, issue type and status."
    )
    with st.expander("Delivery details"):
        details = edd_analysis_details(data.team_completed_issues)
        st.dataframe(details, hide_index=True)


@register_page("KPI Overview")
def kpi_overview_page():
    st.title("Team KPI Overview")
    service: IssueService | None = st.session_state.get("issue_service")
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return

    if st.button("Refresh data", type="primary") or "dashboard_data" not in st.session_state:
        reporter = ProgressReporter("Loading data from Jira")
        try:
            data = service.build_dashboard(progress=reporter.callback)
        except JiraRequestError as exc:
            logger.error("Jira API error (%s): %s", exc.status_code, exc)
            reporter.error(str(exc))
            return
        except RuntimeError as exc:
            logger.error("Dashboard fetch failed: %s", exc)
            reporter.error(f"Error while fetching data: {exc}")
            return
        st.session_state["dashboard_data"] = data
        reporter.complete(f"Loaded {data.kpis.total_tasks} issues.")

    data: DashboardData = st.session_state["dashboard_data"]
    if data.fetched_at is not None:
        st.caption(f"Last updated: {data.fetched_at:%Y-%m-%d %H:%M}")
    ctx = build_overview_context(data.kpis)

    _render_distribution(ctx)
    _render_key_metrics(ctx)
    _render_issue_types(ctx)
    _render_target(ctx)
    if ctx.show_delivery:
        _render_delivery(ctx, data)

    with st.expander("Inspect EDD fields of an issue"):
        issue_key = st.text_input("Issue key")
        if issue_key and st.button("Inspect"):
            try:
                st.json(service.inspect_target_fields(issue_key.strip()))
            except RuntimeError as exc:
                st.error(str(exc))
