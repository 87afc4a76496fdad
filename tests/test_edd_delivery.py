from datetime import datetime

import pytz

from kpi_app.analytics.metrics.edd_delivery import (
    HeuristicChangeEstimator,
    calculate_edd_delivery_metrics,
    days_late,
    edd_analysis_details,
    is_delivered_on_time,
    qualifying_issues,
)
from kpi_app.core.models import IssueModel


def _d(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=pytz.UTC)


def _issue(key, target, resolved, *, created=None, issuetype="Story", status="Done"):
    return IssueModel(
        key=key,
        issuetype=issuetype,
        status=status,
        created=created or _d(2024, 1, 20),
        resolution_date=resolved,
        target_delivery_date=target,
        target_delivery_raw=target.date().isoformat() if target else None,
    )


class FixedEstimator:
    def __init__(self, changes):
        self.changes = changes

    def estimate(self, issue):
        return self.changes[issue.key]


def test_resolved_on_target_day_is_on_time():
    assert is_delivered_on_time(_d(2024, 2, 1), _d(2024, 2, 1))
    assert days_late(_d(2024, 2, 1), _d(2024, 2, 1)) == 0


def test_resolved_day_after_target_is_one_day_late():
    assert not is_delivered_on_time(_d(2024, 2, 2), _d(2024, 2, 1))
    assert days_late(_d(2024, 2, 2), _d(2024, 2, 1)) == 1


def test_partial_day_late_rounds_up():
    assert days_late(_d(2024, 2, 1, 3), _d(2024, 2, 1)) == 1


def test_only_issues_with_target_and_resolution_qualify():
    issues = [
        _issue("PX-1", _d(2024, 2, 1), _d(2024, 2, 1)),
        _issue("PX-2", None, _d(2024, 2, 1)),
        _issue("PX-3", _d(2024, 2, 1), None),
    ]
    assert [i.key for i in qualifying_issues(issues)] == ["PX-1"]


def test_boundary_scenario_counts():
    issues = [
        _issue("PX-1", _d(2024, 2, 1), _d(2024, 2, 1)),
        _issue("PX-2", _d(2024, 2, 1), _d(2024, 2, 2)),
    ]
    edd = calculate_edd_delivery_metrics(issues)
    assert edd.total_with_edd == 2
    assert edd.delivered_on_time == 1
    assert edd.delivered_late == 1
    assert edd.on_time_percentage == 50.0


def test_change_impact_cohorts():
    issues = [
        _issue("PX-1", _d(2024, 2, 1), _d(2024, 1, 30)),
        _issue("PX-2", _d(2024, 2, 1), _d(2024, 2, 1)),
        _issue("PX-3", _d(2024, 2, 1), _d(2024, 2, 5)),
        _issue("PX-4", _d(2024, 2, 1), _d(2024, 2, 9)),
    ]
    estimator = FixedEstimator({"PX-1": 0, "PX-2": 0, "PX-3": 1, "PX-4": 2})
    edd = calculate_edd_delivery_metrics(issues, estimator)
    impact = edd.change_impact_on_delivery
    assert impact.no_changes.percentage == 100
    assert impact.with_changes.percentage == 0
    assert impact.no_changes.on_time == 2 and impact.no_changes.late == 0
    assert impact.with_changes.on_time == 0 and impact.with_changes.late == 2
    assert edd.issues_without_changes == 2
    assert edd.issues_with_changes == 2
    assert edd.average_edd_changes == 0.75


def test_cohort_totals_add_up():
    issues = [
        _issue("PX-1", _d(2024, 2, 1), _d(2024, 1, 30)),
        _issue("PX-2", _d(2024, 2, 1), _d(2024, 2, 3)),
        _issue("PX-3", _d(2024, 2, 1), _d(2024, 2, 5)),
        _issue("PX-4", None, _d(2024, 2, 9)),
    ]
    edd = calculate_edd_delivery_metrics(issues, FixedEstimator({"PX-1": 1, "PX-2": 0, "PX-3": 3}))
    assert edd.delivered_on_time + edd.delivered_late == edd.total_with_edd == 3
    assert edd.issues_with_changes + edd.issues_without_changes == edd.total_with_edd
    assert edd.on_time_percentage == 33.33


def test_empty_cohort_percentage_is_zero():
    issues = [_issue("PX-1", _d(2024, 2, 1), _d(2024, 1, 30))]
    edd = calculate_edd_delivery_metrics(issues, FixedEstimator({"PX-1": 0}))
    assert edd.change_impact_on_delivery.with_changes.percentage == 0
    assert edd.change_impact_on_delivery.no_changes.percentage == 100


def test_no_qualifying_issues_gives_zeroed_block():
    edd = calculate_edd_delivery_metrics([_issue("PX-1", None, _d(2024, 2, 1))])
    assert edd.total_with_edd == 0
    assert edd.on_time_percentage == 0
    assert edd.average_edd_changes == 0
    assert edd.to_dict()["changeImpactOnDelivery"] == {
        "noChanges": {"onTime": 0, "late": 0, "percentage": 0.0},
        "withChanges": {"onTime": 0, "late": 0, "percentage": 0.0},
    }


def test_heuristic_estimator_scores():
    estimator = HeuristicChangeEstimator()
    quick = _issue("PX-1", _d(2024, 2, 1), _d(2024, 1, 25), created=_d(2024, 1, 20))
    assert estimator.estimate(quick) == 0
    slow = _issue("PX-2", _d(2024, 4, 1), _d(2024, 3, 6), created=_d(2024, 1, 1))  # 65 days
    assert estimator.estimate(slow) == 2
    epic_on_hold = _issue(
        "PX-3", _d(2024, 2, 1), _d(2024, 1, 25), created=_d(2024, 1, 20), issuetype="Epic", status="On Hold"
    )
    assert estimator.estimate(epic_on_hold) == 2


def test_heuristic_estimator_is_never_negative():
    estimator = HeuristicChangeEstimator()
    unresolved = _issue("PX-1", _d(2024, 2, 1), None)
    assert estimator.estimate(unresolved) >= 0


def test_analysis_details_rows():
    issues = [
        _issue("PX-1", _d(2024, 2, 1), _d(2024, 2, 3), issuetype="Bug"),
        _issue("PX-2", None, _d(2024, 2, 3)),
    ]
    df = edd_analysis_details(issues, FixedEstimator({"PX-1": 1}))
    assert list(df["key"]) == ["PX-1"]
    row = df.iloc[0]
    assert row["original_edd"] == "2024-02-01"
    assert row["final_edd"] == "2024-02-01"
    assert not row["delivered_on_time"]
    assert row["days_late"] == 2
    assert row["edd_changes"] == 1
    assert row["category"] == "maintenance"


def test_analysis_details_empty_has_columns():
    df = edd_analysis_details([])
    assert df.empty
    assert "days_late" in df.columns
