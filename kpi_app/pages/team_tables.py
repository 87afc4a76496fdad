"""Team tables page: status-scoped issue lists with persisted table settings."""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from kpi_app.app import register_page
from kpi_app.core.config import SETTINGS, TABLE_LABELS
from kpi_app.core.service import IssueService
from kpi_app.core.settings_store import TableSettingsController
from kpi_app.core.table_settings import TABLE_TYPES, SortSettings, TableSettings
from kpi_app.visual.tables import filter_frame, page_count, render_settings_table

logger = logging.getLogger(__name__)

FILTER_COLUMNS = ("status", "assignee", "issuetype", "priority")


def _controller() -> TableSettingsController:
    if "table_settings_controller" not in st.session_state:
        st.session_state["table_settings_controller"] = TableSettingsController()
    return st.session_state["table_settings_controller"]


def _load_table(service: IssueService, table_type: str, refresh: bool) -> pd.DataFrame:
    cache: dict[str, pd.DataFrame] = st.session_state.setdefault("table_frames", {})
    if refresh or table_type not in cache:
        cache[table_type] = service.fetch_table_issues(table_type)
    return cache[table_type]


def _settings_panel(
    controller: TableSettingsController, table_type: str, df: pd.DataFrame, settings: TableSettings, user_id
) -> TableSettings:
    with st.expander("Table settings"):
        filters = dict(settings.filters)
        for column in FILTER_COLUMNS:
            if column not in df.columns:
                continue
            options = sorted(df[column].dropna().astype(str).unique())
            chosen = st.multiselect(
                column.title(),
                options,
                default=[v for v in filters.get(column, []) if v in options],
                key=f"{table_type}-filter-{column}",
            )
            filters[column] = chosen
        columns = [c.key for c in settings.columns]
        sort_col = st.selectbox(
            "Sort by",
            columns,
            index=columns.index(settings.sort.column) if settings.sort.column in columns else 0,
            key=f"{table_type}-sort",
        )
        direction = st.radio(
            "Direction",
            ("desc", "asc"),
            index=0 if settings.sort.direction == "desc" else 1,
            horizontal=True,
            key=f"{table_type}-direction",
        )
        visible = st.multiselect(
            "Visible columns",
            columns,
            default=settings.visible_columns(),
            key=f"{table_type}-visible",
        )
        page_size = st.number_input(
            "Rows per page", min_value=5, max_value=500, value=settings.page_size, key=f"{table_type}-page-size"
        )
        width_col, width_val = st.columns(2)
        resize_key = width_col.selectbox("Column", columns, key=f"{table_type}-resize-col")
        current_width = (settings.column(resize_key).width if settings.column(resize_key) else None) or 120
        new_width = width_val.number_input(
            "Width (px)", min_value=40, max_value=800, value=int(current_width), key=f"{table_type}-resize-width"
        )
        if st.button("Apply width", key=f"{table_type}-resize"):
            settings = controller.update_column_width(table_type, resize_key, int(new_width), user_id)
        save, reset = st.columns(2)
        if save.button("Save settings", key=f"{table_type}-save"):
            for column in settings.columns:
                column.visible = column.key in visible
            settings.filters = filters
            settings.sort = SortSettings(sort_col, direction)
            settings.page_size = int(page_size)
            try:
                controller.save(settings)
                st.success("Settings saved.")
            except Exception as exc:
                logger.error("Saving %s settings failed: %s", table_type, exc)
                st.error(f"Could not save settings: {exc}")
        if reset.button("Reset to defaults", key=f"{table_type}-reset"):
            settings = controller.reset_to_defaults(table_type, user_id)
            st.success("Settings reset.")
    return settings


@register_page("Team Tables")
def team_tables_page():
    st.title("Team Tables")
    service: IssueService | None = st.session_state.get("issue_service")
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return

    table_type = st.selectbox("Table", TABLE_TYPES, format_func=lambda t: TABLE_LABELS.get(t, t))
    refresh = st.button("Refresh", type="primary")
    try:
        df = _load_table(service, table_type, refresh)
    except RuntimeError as exc:
        logger.error("Fetching %s table failed: %s", table_type, exc)
        st.error(str(exc))
        return
    if df.empty:
        st.info("No issues found.")
        return

    controller = _controller()
    user_id = st.session_state.get("jira_email")
    settings = controller.get(table_type, user_id)
    settings = _settings_panel(controller, table_type, df, settings, user_id)

    matching = len(filter_frame(df, settings.filters))
    pages = page_count(matching, settings.page_size)
    page = st.number_input("Page", min_value=1, max_value=pages, value=1, key=f"{table_type}-page")
    st.caption(f"{matching} issue(s), page {page} of {pages}")
    render_settings_table(df, settings, st.session_state.get("jira_server", ""), page=int(page))
    csv = df.to_csv(index=False).encode(SETTINGS.download_encoding)
    st.download_button(
        "Download CSV",
        data=csv,
        file_name=f"kpi_{table_type}.csv",
        mime="text/csv",
    )
