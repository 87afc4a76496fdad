"""IssueService: orchestrates fetching, mapping, and KPI computation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from kpi_app.analytics.engine import calculate_kpis, with_edd_override
from kpi_app.analytics.metrics.edd_delivery import ChangeEstimator

from . import queries
from .config import (
    COMPLETED_ISSUES_LOOKBACK_DAYS,
    DASHBOARD_FETCH_MAX_WORKERS,
    DEFAULT_MAX_RESULTS,
    JIRA_FETCH_BASE_FIELDS,
    PROJECT_ISSUES_LOOKBACK_DAYS,
    TABLE_MAX_RESULTS,
    TABLE_STATUS_FILTERS,
    TARGET_DELIVERY_FIELD_CANDIDATES,
    TEAM_COMPLETED_LOOKBACK_DAYS,
    TEAM_COMPLETED_MAX_RESULTS,
    TIMEZONE,
)
from .jira_client import JiraAPI
from .mappers import issues_to_dataframe, map_issues, unwrap_field_value
from .models import IssueModel, KPIMetrics
from .queries import TeamScope

DEFAULT_FIELDS: Sequence[str] = tuple(JIRA_FETCH_BASE_FIELDS)
ProgressCallback = Callable[[str, int | None, int | None], None]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DashboardData:
    kpis: KPIMetrics
    all_issues: list[IssueModel] = field(default_factory=list)
    completed_issues: list[IssueModel] = field(default_factory=list)
    team_completed_issues: list[IssueModel] = field(default_factory=list)
    fetched_at: datetime | None = None


class IssueService:
    def __init__(self, api: JiraAPI, scope: TeamScope | None = None):
        self.api = api
        self.scope = scope or TeamScope()
        self._tz = pytz.timezone(TIMEZONE)

    # ------------------ Fetch Methods ------------------
    def _fetch(self, jql: str, max_results: int) -> list[IssueModel]:
        raw = self.api.fetch_issues(jql, max_results=max_results, fields=list(DEFAULT_FIELDS))
        return map_issues(raw)

    def fetch_project_issues(
        self,
        status: str | None = None,
        *,
        created_within_days: int = PROJECT_ISSUES_LOOKBACK_DAYS,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> list[IssueModel]:
        jql = queries.project_issues_jql(self.scope, status, created_within_days)
        return self._fetch(jql, max_results)

    def fetch_completed_issues(
        self,
        *,
        resolved_within_days: int = COMPLETED_ISSUES_LOOKBACK_DAYS,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> list[IssueModel]:
        jql = queries.completed_issues_jql(self.scope, resolved_within_days)
        return self._fetch(jql, max_results)

    def fetch_issues_by_type(
        self,
        issue_types: Sequence[str],
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> list[IssueModel]:
        jql = queries.issues_by_type_jql(self.scope, issue_types)
        return self._fetch(jql, max_results)

    def fetch_team_completed_issues(
        self,
        *,
        resolved_within_days: int = TEAM_COMPLETED_LOOKBACK_DAYS,
        max_results: int = TEAM_COMPLETED_MAX_RESULTS,
    ) -> list[IssueModel]:
        jql = queries.team_completed_issues_jql(self.scope, resolved_within_days)
        return self._fetch(jql, max_results)

    def fetch_table_issues(self, table_type: str, *, max_results: int = TABLE_MAX_RESULTS) -> pd.DataFrame:
        statuses = TABLE_STATUS_FILTERS.get(table_type)
        if statuses is None:
            raise ValueError(f"Unknown table type: {table_type}")
        jql = queries.table_issues_jql(self.scope, statuses)
        return issues_to_dataframe(self._fetch(jql, max_results))

    def inspect_target_fields(self, issue_key: str) -> dict[str, Any]:
        """Show which target-date candidate fields carry a value on one issue."""
        raw = self.api.fetch_issue_raw(issue_key)
        fields = raw.get("fields") or {}
        return {name: unwrap_field_value(fields.get(name)) for name in TARGET_DELIVERY_FIELD_CANDIDATES}

    # ------------------ Dashboard ------------------
    def build_dashboard(
        self,
        *,
        estimator: ChangeEstimator | None = None,
        progress: ProgressCallback | None = None,
    ) -> DashboardData:
        """Fetch the three KPI datasets concurrently and compute the metrics.

        Distribution, cycle time and throughput use the general all/completed
        sets; the delivery (EDD) block is replaced by the team-completed set.
        """
        jobs: dict[str, Callable[[], list[IssueModel]]] = {
            "all issues": self.fetch_project_issues,
            "completed issues": self.fetch_completed_issues,
            "team completed issues": self.fetch_team_completed_issues,
        }
        if progress:
            progress("Fetching issues from Jira", 0, len(jobs))
        results: dict[str, list[IssueModel]] = {}
        with ThreadPoolExecutor(max_workers=DASHBOARD_FETCH_MAX_WORKERS) as pool:
            futures = {name: pool.submit(job) for name, job in jobs.items()}
            for done, (name, fut) in enumerate(futures.items(), start=1):
                # Errors propagate; a partial dashboard would mix scopes.
                results[name] = fut.result()
                logger.info("Loaded %d %s", len(results[name]), name)
                if progress:
                    progress(f"Loaded {name}", done, len(jobs))

        if progress:
            progress("Calculating KPIs", None, None)
        kpis = calculate_kpis(results["all issues"], results["completed issues"], estimator)
        kpis = with_edd_override(kpis, results["team completed issues"], estimator)
        return DashboardData(
            kpis=kpis,
            all_issues=results["all issues"],
            completed_issues=results["completed issues"],
            team_completed_issues=results["team completed issues"],
            fetched_at=datetime.now(self._tz),
        )
