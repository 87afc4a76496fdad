"""Chart builders (Altair) for the KPI overview."""

from __future__ import annotations

import altair as alt
import pandas as pd

CATEGORY_COLORS = {
    "New Product": "#0088FE",
    "Maintenance": "#00C49F",
}
OUTCOME_COLORS = {"On time": "#4CAF50", "Late": "#f44336"}


def _category_scale() -> alt.Scale:
    return alt.Scale(domain=list(CATEGORY_COLORS), range=list(CATEGORY_COLORS.values()))


def distribution_donut(frame: pd.DataFrame):
    if frame.empty or frame["share"].sum() == 0:
        return None
    base = alt.Chart(frame).encode(
        theta=alt.Theta("share:Q", stack=True),
        color=alt.Color("category:N", scale=_category_scale(), title="Category"),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("share:Q", title="Share (%)", format=".1f"),
        ],
    )
    arc = base.mark_arc(innerRadius=60, outerRadius=110)
    labels = base.mark_text(radius=135, size=13).encode(text=alt.Text("share:Q", format=".1f"))
    return (arc + labels).properties(height=300)


def issue_type_bars(frame: pd.DataFrame):
    if frame.empty:
        return None
    chart = (
        alt.Chart(frame)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", title="Issues"),
            y=alt.Y("issuetype:N", sort="-x", title="Issue Type"),
            color=alt.Color("category_label:N", scale=_category_scale(), title="Category"),
            tooltip=[
                alt.Tooltip("issuetype:N", title="Type"),
                alt.Tooltip("category_label:N", title="Category"),
                alt.Tooltip("count:Q", title="Count"),
            ],
        )
        .properties(height=max(160, 28 * len(frame)))
    )
    return chart


def change_impact_bars(frame: pd.DataFrame):
    if frame.empty or frame["count"].sum() == 0:
        return None
    chart = (
        alt.Chart(frame)
        .mark_bar()
        .encode(
            x=alt.X("cohort:N", title=None),
            y=alt.Y("count:Q", title="Issues"),
            color=alt.Color(
                "outcome:N",
                scale=alt.Scale(domain=list(OUTCOME_COLORS), range=list(OUTCOME_COLORS.values())),
                title="Delivery",
            ),
            xOffset="outcome:N",
            tooltip=[
                alt.Tooltip("cohort:N", title="Cohort"),
                alt.Tooltip("outcome:N", title="Delivery"),
                alt.Tooltip("count:Q", title="Issues"),
                alt.Tooltip("percentage:Q", title="On time (%)", format=".1f"),
            ],
        )
        .properties(height=260)
    )
    return chart
