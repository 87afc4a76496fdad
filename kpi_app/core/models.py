"""Domain data models for Jira issues and KPI results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class AssigneeModel:
    account_id: str | None
    display_name: str | None
    email: str | None


@dataclass(slots=True)
class IssueModel:
    key: str
    issuetype: str
    status: str
    created: datetime
    resolution_date: datetime | None = None
    priority: str | None = None
    assignee: AssigneeModel | None = None
    summary: str | None = None
    updated: datetime | None = None
    target_delivery_date: datetime | None = None
    target_delivery_raw: str | None = None
    target_delivery_field: str | None = None
    labels: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# KPI results
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class KPIDistribution:
    maintenance: float = 0.0
    new_product: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"maintenance": self.maintenance, "newProduct": self.new_product}


@dataclass(slots=True)
class CohortOutcome:
    on_time: int = 0
    late: int = 0
    percentage: float = 0.0

    @property
    def total(self) -> int:
        return self.on_time + self.late

    def to_dict(self) -> dict[str, Any]:
        return {"onTime": self.on_time, "late": self.late, "percentage": self.percentage}


@dataclass(slots=True)
class ChangeImpact:
    no_changes: CohortOutcome = field(default_factory=CohortOutcome)
    with_changes: CohortOutcome = field(default_factory=CohortOutcome)

    def to_dict(self) -> dict[str, Any]:
        return {"noChanges": self.no_changes.to_dict(), "withChanges": self.with_changes.to_dict()}


@dataclass(slots=True)
class EDDDeliveryMetrics:
    total_with_edd: int = 0
    delivered_on_time: int = 0
    delivered_late: int = 0
    on_time_percentage: float = 0.0
    average_edd_changes: float = 0.0
    issues_with_changes: int = 0
    issues_without_changes: int = 0
    change_impact_on_delivery: ChangeImpact = field(default_factory=ChangeImpact)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalWithEDD": self.total_with_edd,
            "deliveredOnTime": self.delivered_on_time,
            "deliveredLate": self.delivered_late,
            "onTimePercentage": self.on_time_percentage,
            "averageEDDChanges": self.average_edd_changes,
            "issuesWithChanges": self.issues_with_changes,
            "issuesWithoutChanges": self.issues_without_changes,
            "changeImpactOnDelivery": self.change_impact_on_delivery.to_dict(),
        }


@dataclass(slots=True)
class KPIMetrics:
    distribution: KPIDistribution = field(default_factory=KPIDistribution)
    avg_cycle_time: str = "0"
    total_tasks: int = 0
    completed_tasks: int = 0
    throughput: float = 0.0  # tasks per week
    maintenance_types: dict[str, int] = field(default_factory=dict)
    new_product_types: dict[str, int] = field(default_factory=dict)
    edd_delivery_metrics: EDDDeliveryMetrics = field(default_factory=EDDDeliveryMetrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "distribution": self.distribution.to_dict(),
            "avgCycleTime": self.avg_cycle_time,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "throughput": self.throughput,
            "maintenanceTypes": dict(self.maintenance_types),
            "newProductTypes": dict(self.new_product_types),
            "eddDeliveryMetrics": self.edd_delivery_metrics.to_dict(),
        }
