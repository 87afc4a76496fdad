"""Table helpers: apply persisted table settings and render with Streamlit."""

from __future__ import annotations

import math

import pandas as pd
import streamlit as st

from kpi_app.core.table_settings import TableSettings

DATE_COLUMNS = ("created", "updated", "resolution_date", "target_delivery_date")


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
        )
    }
    return out, cfg


def filter_frame(df: pd.DataFrame, filters: dict) -> pd.DataFrame:
    """Apply multi-select filters (``{column: [values]}``) and an optional
    ``dateRange`` on ``created``. Empty selections keep every row."""
    if df.empty or not filters:
        return df
    out = df
    for column, selected in filters.items():
        if column == "dateRange" or not selected or column not in out.columns:
            continue
        out = out[out[column].astype(str).isin([str(v) for v in selected])]
    date_range = filters.get("dateRange") or {}
    if date_range and "created" in out.columns:
        created = pd.to_datetime(out["created"], utc=True, errors="coerce")
        if date_range.get("start"):
            out = out[created >= pd.to_datetime(date_range["start"], utc=True)]
            created = created.loc[out.index]
        if date_range.get("end"):
            out = out[created <= pd.to_datetime(date_range["end"], utc=True)]
    return out


def page_count(rows: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, math.ceil(rows / page_size))


def apply_table_settings(
    df: pd.DataFrame,
    settings: TableSettings,
    *,
    page: int = 1,
) -> tuple[pd.DataFrame, list[str]]:
    """Filter, sort and paginate ``df``; return the page and its visible columns."""
    if df.empty:
        return df, []
    out = filter_frame(df, settings.filters)
    if settings.sort.column in out.columns:
        out = out.sort_values(by=settings.sort.column, ascending=settings.sort.ascending, na_position="last")
    display_cols = [c for c in settings.visible_columns() if c in out.columns]
    if settings.page_size > 0:
        page = min(max(page, 1), page_count(len(out), settings.page_size))
        start = (page - 1) * settings.page_size
        out = out.iloc[start : start + settings.page_size]
    return out, display_cols


def column_config_for(settings: TableSettings, display_cols: list[str]) -> dict[str, object]:
    cfg: dict[str, object] = {}
    for col in display_cols:
        column = settings.column(col)
        width = column.width if column else None
        if col in DATE_COLUMNS:
            cfg[col] = st.column_config.DatetimeColumn(col, format="YYYY-MM-DD", width=width)
        else:
            cfg[col] = st.column_config.Column(col, width=width)
    return cfg


def render_settings_table(df: pd.DataFrame, settings: TableSettings, server: str, *, page: int = 1) -> None:
    page_df, display_cols = apply_table_settings(df, settings, page=page)
    if page_df.empty:
        st.info("No issues match the current filters.")
        return
    cfg = column_config_for(settings, display_cols)
    if server:
        page_df, link_cfg = add_ticket_link(page_df, server)
        if link_cfg:
            display_cols = ["Ticket"] + [c for c in display_cols if c != "key"]
            cfg.update(link_cfg)
    st.dataframe(page_df[display_cols], hide_index=True, column_config=cfg)
