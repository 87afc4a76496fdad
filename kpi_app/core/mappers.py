"""Mapping raw Jira issue JSON into IssueModel instances."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

import pandas as pd

from .config import ISSUE_CORE_COLUMNS, TARGET_DELIVERY_FIELD_CANDIDATES
from .models import AssigneeModel, IssueModel

logger = logging.getLogger(__name__)


def parse_dt(val: Any) -> datetime | None:
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def unwrap_field_value(raw: Any) -> str | None:
    """Reduce a Jira field value to plain text.

    Custom fields arrive as a bare scalar, an option object with ``value``, or
    a named object with ``name``. All three shapes unwrap the same way.

    >>> unwrap_field_value("2024-02-01")
    '2024-02-01'
    >>> unwrap_field_value({"value": "2024-02-01"})
    '2024-02-01'
    >>> unwrap_field_value({"name": "2024-02-01"})
    '2024-02-01'
    >>> unwrap_field_value({}) is None
    True
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, dict):
        for attr in ("value", "name"):
            inner = raw.get(attr)
            if inner:
                return str(inner).strip() or None
        return None
    if isinstance(raw, (list, tuple)):
        return None
    text = str(raw).strip()
    return text or None


def resolve_target_delivery(
    fields: dict[str, Any],
    candidates: Sequence[str] = TARGET_DELIVERY_FIELD_CANDIDATES,
) -> tuple[str | None, str | None]:
    """Return ``(text, field_id)`` for the first candidate with a usable value."""
    for field_id in candidates:
        text = unwrap_field_value(fields.get(field_id))
        if text:
            return text, field_id
    return None, None


def _name_of(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    return None


def _map_assignee(value: Any) -> AssigneeModel | None:
    if not isinstance(value, dict):
        return None
    return AssigneeModel(
        account_id=value.get("accountId"),
        display_name=value.get("displayName"),
        email=value.get("emailAddress"),
    )


def map_issue(
    raw: dict[str, Any],
    target_fields: Sequence[str] = TARGET_DELIVERY_FIELD_CANDIDATES,
) -> IssueModel:
    fields = raw.get("fields") or {}
    key = raw.get("key")

    target_raw, target_field = resolve_target_delivery(fields, target_fields)
    target_dt = parse_dt(target_raw) if target_raw else None
    if target_raw and target_dt is None:
        logger.debug("Ignoring unparseable target date %r on %s (%s)", target_raw, key, target_field)
        target_field = None
    elif target_dt is not None:
        logger.debug("Resolved target date for %s from %s: %s", key, target_field, target_raw)

    return IssueModel(
        key=key,
        issuetype=_name_of(fields.get("issuetype")) or "",
        status=_name_of(fields.get("status")) or "",
        created=parse_dt(fields.get("created")),
        resolution_date=parse_dt(fields.get("resolutiondate")),
        priority=_name_of(fields.get("priority")),
        assignee=_map_assignee(fields.get("assignee")),
        summary=fields.get("summary"),
        updated=parse_dt(fields.get("updated")),
        target_delivery_date=target_dt,
        target_delivery_raw=target_raw if target_dt is not None else None,
        target_delivery_field=target_field,
        labels=list(fields.get("labels", []) or []),
    )


def map_issues(raw_issues: Iterable[dict[str, Any]]) -> list[IssueModel]:
    return [map_issue(r) for r in raw_issues or []]


def issues_to_dataframe(issues: Iterable[IssueModel]) -> pd.DataFrame:
    rows = []
    for i in issues:
        rows.append(
            {
                "key": i.key,
                "summary": i.summary,
                "issuetype": i.issuetype,
                "status": i.status,
                "priority": i.priority or "None",
                "assignee": (i.assignee.display_name if i.assignee else None) or "Unassigned",
                "created": i.created,
                "updated": i.updated,
                "resolution_date": i.resolution_date,
                "target_delivery_date": i.target_delivery_date,
                "labels": i.labels,
            }
        )
    df = pd.DataFrame(rows, columns=list(ISSUE_CORE_COLUMNS))
    if not df.empty:

        def _format_labels(val):
            if not val:
                return ""
            unique = {v for v in val if v}
            return ", ".join(sorted(unique, key=lambda s: s.lower()))

        df["labels"] = df["labels"].apply(_format_labels)
    return df
