from datetime import datetime

import pytz

from kpi_app.analytics.aggregations.distribution import distribution, group_by_type, type_breakdown_frame
from kpi_app.core.models import IssueModel, KPIMetrics


def _issues(*types):
    created = datetime(2024, 1, 1, tzinfo=pytz.UTC)
    return [IssueModel(key=f"PX-{n}", issuetype=t, status="Open", created=created) for n, t in enumerate(types)]


def test_distribution_percentages():
    dist = distribution(_issues("Bug", "Story", "Story"))
    assert dist.maintenance == 33.33
    assert dist.new_product == 66.67


def test_distribution_shares_sum_to_hundred():
    dist = distribution(_issues("Bug", "Support", "Story", "Epic", "Task", "Hotfix", "Spike"))
    assert abs(dist.maintenance + dist.new_product - 100) <= 0.01


def test_distribution_empty():
    dist = distribution([])
    assert dist.maintenance == 0 and dist.new_product == 0


def test_group_by_type_counts():
    maintenance, new_product = group_by_type(_issues("Bug", "Bug", "Incident", "Story", "bug"))
    assert maintenance == {"Bug": 2, "Incident": 1}
    # Type names are not normalised.
    assert new_product == {"Story": 1, "bug": 1}
    assert sum(maintenance.values()) + sum(new_product.values()) == 5


def test_type_breakdown_frame():
    metrics = KPIMetrics(maintenance_types={"Bug": 2}, new_product_types={"Story": 3})
    df = type_breakdown_frame(metrics)
    assert set(df["category_label"]) == {"Maintenance", "New Product"}
    assert df.loc[df["issuetype"] == "Story", "count"].item() == 3


def test_type_breakdown_frame_empty():
    df = type_breakdown_frame(KPIMetrics())
    assert df.empty
    assert list(df.columns) == ["issuetype", "category", "category_label", "count"]
