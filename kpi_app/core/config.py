"""Central configuration: team scope defaults, KPI constants, fetch limits and table definitions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_DEFAULT_SERVER = "https://your-domain.atlassian.net"
TIMEZONE = "Europe/Warsaw"
DEFAULT_PROJECT_NAME = "Global Delivery"

# Default team scope used by the JQL builder (overridable on the Setup page)
DEFAULT_TEAM_FIELD = "Team (GOLD)[Dropdown]"
DEFAULT_TEAM_NAME = "Pixels"
DEFAULT_PLATFORM_FIELD = "Platform[Dropdown]"
DEFAULT_PLATFORMS: Sequence[str] = ("SE",)

# =============================================================================
# Work Categorization
# =============================================================================
# Issue types counted as maintenance work; anything else is new-product work.
# Matching is case-sensitive and exact.
MAINTENANCE_ISSUE_TYPES: frozenset[str] = frozenset(
    {
        "Bug",
        "Support",
        "Incident",
        "Hotfix",
        "Technical Debt",
        "Maintenance",
    }
)

CATEGORY_MAINTENANCE = "maintenance"
CATEGORY_NEW_PRODUCT = "newProduct"

CATEGORY_LABELS: dict[str, str] = {
    CATEGORY_MAINTENANCE: "Maintenance",
    CATEGORY_NEW_PRODUCT: "New Product",
}

# Target split of work (percent) and allowed deviation for the 30/70 analysis
MAINTENANCE_TARGET_PCT: float = 30.0
NEW_PRODUCT_TARGET_PCT: float = 70.0
TARGET_TOLERANCE_PCT: float = 5.0

# =============================================================================
# Target Delivery Date (EDD) Configuration
# =============================================================================
# Candidate fields holding the expected development delivery date, in priority
# order. The first non-empty value wins. Tenants store it in different slots.
TARGET_DELIVERY_FIELD_CANDIDATES: Sequence[str] = (
    "customfield_13587",  # EDD field for the Pixels team
    "customfield_14219",  # EDD used by other teams
    "customfield_10003",  # EDD Dev
    "customfield_10002",  # ETA Dev
    "EDD Dev",
    "Expected Development Delivery Date",
    "Development Due Date",
    "Dev Due Date",
    "duedate",
)

# Heuristic change estimation knobs (cumulative cycle-time thresholds in days)
EDD_CHANGE_AGE_THRESHOLDS: Sequence[int] = (30, 60, 90)
EDD_CHANGE_TYPE_KEYWORDS: Sequence[str] = ("epic", "feature")
EDD_CHANGE_STATUS_KEYWORDS: Sequence[str] = ("blocked", "hold", "more info")

# On-time percentage bands for the dashboard rating
ON_TIME_GOOD_PCT: float = 80.0
ON_TIME_WARNING_PCT: float = 60.0

# =============================================================================
# Fetch Windows & Limits
# =============================================================================
PROJECT_ISSUES_LOOKBACK_DAYS: int = 280
COMPLETED_ISSUES_LOOKBACK_DAYS: int = 290
TEAM_COMPLETED_LOOKBACK_DAYS: int = 190
DEFAULT_MAX_RESULTS: int = 100
TEAM_COMPLETED_MAX_RESULTS: int = 500
TABLE_MAX_RESULTS: int = 200

COMPLETED_STATUSES: Sequence[str] = ("Done", "Completed")

# Search cache lifetime for JiraAPI (seconds)
SEARCH_CACHE_TTL: float = 300.0

# The three dashboard datasets are fetched concurrently; calls are I/O bound.
DASHBOARD_FETCH_MAX_WORKERS = 3

# Canonical field list for Jira fetches
JIRA_FETCH_BASE_FIELDS = [
    "key",
    "summary",
    "issuetype",
    "created",
    "updated",
    "resolutiondate",
    "status",
    "priority",
    "assignee",
    "labels",
    "duedate",
    "customfield_13587",
    "customfield_13568",
    "customfield_14219",
    "customfield_13188",
    "customfield_10002",
    "customfield_10003",
]

# =============================================================================
# Team Tables
# =============================================================================
TABLE_STATUS_FILTERS: dict[str, Sequence[str]] = {
    "in-progress": (
        "In development",
        "In progress",
        "In review",
        "More Info Requested Internal",
        "More Info Requested External",
    ),
    "awaiting-prod": ("Awaiting Prod", "Ready for Release"),
    "to-take": ("On Hold", "New", "Prioritized", "Accepted", "To Do"),
    "more-info-request": ("More Info Requested Internal", "More Info Requested External"),
}

TABLE_ORDER_BY = "cf[14219] ASC, assignee ASC, status ASC"

TABLE_LABELS: dict[str, str] = {
    "in-progress": "In Progress",
    "awaiting-prod": "Awaiting Prod",
    "to-take": "To Take",
    "more-info-request": "More Info Request",
}

ISSUE_CORE_COLUMNS: Sequence[str] = (
    "key",
    "summary",
    "issuetype",
    "status",
    "priority",
    "assignee",
    "created",
    "updated",
    "resolution_date",
    "target_delivery_date",
    "labels",
)

# Local settings store location (relative to the working directory)
LOCAL_SETTINGS_DIR = "data/table_settings"
LOCAL_SETTINGS_PREFIX = "kpi-dashboard-table-settings"
FIRESTORE_SETTINGS_COLLECTION = "user_settings"

# =============================================================================
# Logging
# =============================================================================
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install a basic root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)


@dataclass(slots=True)
class AppSettings:
    download_encoding: str = "utf-8"
    log_level: str = "INFO"


SETTINGS = AppSettings()
