"""JQL builders for the team-scoped datasets the dashboard fetches."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .config import (
    COMPLETED_ISSUES_LOOKBACK_DAYS,
    COMPLETED_STATUSES,
    DEFAULT_PLATFORM_FIELD,
    DEFAULT_PLATFORMS,
    DEFAULT_PROJECT_NAME,
    DEFAULT_TEAM_FIELD,
    DEFAULT_TEAM_NAME,
    PROJECT_ISSUES_LOOKBACK_DAYS,
    TABLE_ORDER_BY,
    TEAM_COMPLETED_LOOKBACK_DAYS,
)


def quote(value: str) -> str:
    """Double-quote a JQL literal, escaping embedded quotes and backslashes."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _in_list(values: Sequence[str]) -> str:
    return ", ".join(quote(v) for v in values)


@dataclass(slots=True)
class TeamScope:
    project: str = DEFAULT_PROJECT_NAME
    team_field: str = DEFAULT_TEAM_FIELD
    team: str | None = DEFAULT_TEAM_NAME
    member_ids: Sequence[str] = field(default_factory=tuple)
    platform_field: str = DEFAULT_PLATFORM_FIELD
    platforms: Sequence[str] = field(default_factory=lambda: tuple(DEFAULT_PLATFORMS))


def team_filter(scope: TeamScope) -> str:
    """Base JQL: project, team membership (field or known assignees), platform."""
    parts = [f"project = {quote(scope.project)}"]
    members: list[str] = []
    if scope.team:
        members.append(f"{quote(scope.team_field)} = {quote(scope.team)}")
    if scope.member_ids:
        members.append(f"assignee in ({_in_list(scope.member_ids)})")
    if members:
        parts.append("(" + " OR ".join(members) + ")")
    if scope.platforms:
        parts.append(f"{quote(scope.platform_field)} in ({_in_list(scope.platforms)})")
    return " AND ".join(parts)


def project_issues_jql(
    scope: TeamScope,
    status: str | None = None,
    created_within_days: int = PROJECT_ISSUES_LOOKBACK_DAYS,
) -> str:
    jql = team_filter(scope)
    if status:
        jql += f" AND status = {quote(status)}"
    return f"{jql} AND created >= -{int(created_within_days)}d"


def completed_issues_jql(
    scope: TeamScope,
    resolved_within_days: int = COMPLETED_ISSUES_LOOKBACK_DAYS,
) -> str:
    return (
        f"{team_filter(scope)} AND status in ({_in_list(COMPLETED_STATUSES)})"
        f" AND resolutiondate >= -{int(resolved_within_days)}d"
    )


def issues_by_type_jql(
    scope: TeamScope,
    issue_types: Sequence[str],
    created_within_days: int = COMPLETED_ISSUES_LOOKBACK_DAYS,
) -> str:
    return (
        f"{team_filter(scope)} AND issuetype in ({_in_list(issue_types)})"
        f" AND created >= -{int(created_within_days)}d"
    )


def team_completed_issues_jql(
    scope: TeamScope,
    resolved_within_days: int = TEAM_COMPLETED_LOOKBACK_DAYS,
) -> str:
    return f"{completed_issues_jql(scope, resolved_within_days)} ORDER BY resolutiondate DESC"


def table_issues_jql(
    scope: TeamScope,
    statuses: Sequence[str],
    order_by: str | None = TABLE_ORDER_BY,
) -> str:
    jql = f"{team_filter(scope)} AND status in ({_in_list(statuses)})"
    if order_by:
        jql += f" ORDER BY {order_by}"
    return jql
