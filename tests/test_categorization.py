from datetime import datetime

import pytz

from kpi_app.analytics.metrics.categorization import categorize, is_maintenance
from kpi_app.core.models import IssueModel


def _issue(issuetype):
    return IssueModel(key="PX-1", issuetype=issuetype, status="Done", created=datetime(2024, 1, 1, tzinfo=pytz.UTC))


def test_maintenance_types():
    for name in ("Bug", "Support", "Incident", "Hotfix", "Technical Debt", "Maintenance"):
        assert categorize(_issue(name)) == "maintenance"


def test_everything_else_is_new_product():
    assert categorize(_issue("Story")) == "newProduct"
    assert categorize(_issue("Epic")) == "newProduct"
    assert categorize(_issue("")) == "newProduct"


def test_match_is_case_sensitive():
    assert categorize(_issue("bug")) == "newProduct"
    assert categorize(_issue("Bug ")) == "newProduct"


def test_categorize_is_deterministic():
    issue = _issue("Hotfix")
    assert categorize(issue) == categorize(issue)


def test_membership_list_is_substitutable():
    issue = _issue("Chore")
    assert categorize(issue, maintenance_types={"Chore"}) == "maintenance"
    assert not is_maintenance(_issue("Bug"), maintenance_types={"Chore"})
