"""Maintenance vs. new-product categorization (pure functions)."""

from __future__ import annotations

from collections.abc import Collection

from kpi_app.core.config import CATEGORY_MAINTENANCE, CATEGORY_NEW_PRODUCT, MAINTENANCE_ISSUE_TYPES
from kpi_app.core.models import IssueModel


def categorize(issue: IssueModel, maintenance_types: Collection[str] = MAINTENANCE_ISSUE_TYPES) -> str:
    """Return ``"maintenance"`` or ``"newProduct"`` for ``issue``.

    Exact, case-sensitive match of the issue type against ``maintenance_types``;
    any other type (including empty or unknown) is new-product work.
    """
    if issue.issuetype in maintenance_types:
        return CATEGORY_MAINTENANCE
    return CATEGORY_NEW_PRODUCT


def is_maintenance(issue: IssueModel, maintenance_types: Collection[str] = MAINTENANCE_ISSUE_TYPES) -> bool:
    return categorize(issue, maintenance_types) == CATEGORY_MAINTENANCE
