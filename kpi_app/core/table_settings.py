"""Per-table UI settings (columns, filters, sort, page size) and their defaults.

Defaults are read from ``tables.yaml`` next to the package when present, with
the built-in definitions below as fallback.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

TABLE_TYPES: tuple[str, ...] = ("in-progress", "awaiting-prod", "to-take", "more-info-request")

STORAGE_FIRESTORE = "firestore"
STORAGE_LOCAL = "local"


@dataclass(frozen=True, slots=True)
class TableStorageConfig:
    table_type: str
    storage_type: str
    is_global: bool  # True: one shared document, False: per user


TABLE_STORAGE_CONFIG: dict[str, TableStorageConfig] = {
    "in-progress": TableStorageConfig("in-progress", STORAGE_FIRESTORE, True),
    "awaiting-prod": TableStorageConfig("awaiting-prod", STORAGE_LOCAL, False),
    "to-take": TableStorageConfig("to-take", STORAGE_LOCAL, False),
    "more-info-request": TableStorageConfig("more-info-request", STORAGE_LOCAL, False),
}


@dataclass(slots=True)
class ColumnSettings:
    key: str
    width: int | None = None
    visible: bool = True
    order: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "width": self.width, "visible": self.visible, "order": self.order}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnSettings:
        width = data.get("width")
        return cls(
            key=str(data["key"]),
            width=int(width) if width is not None else None,
            visible=bool(data.get("visible", True)),
            order=int(data.get("order", 0)),
        )


@dataclass(slots=True)
class SortSettings:
    column: str
    direction: str = "desc"

    @property
    def ascending(self) -> bool:
        return self.direction == "asc"

    def to_dict(self) -> dict[str, Any]:
        return {"column": self.column, "direction": self.direction}


@dataclass(slots=True)
class TableSettings:
    id: str
    columns: list[ColumnSettings]
    sort: SortSettings
    page_size: int
    filters: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    last_updated: float = 0.0

    def column(self, key: str) -> ColumnSettings | None:
        return next((c for c in self.columns if c.key == key), None)

    def visible_columns(self) -> list[str]:
        return [c.key for c in sorted(self.columns, key=lambda c: c.order) if c.visible]

    def touch(self) -> None:
        self.last_updated = time.time() * 1000.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "columns": [c.to_dict() for c in self.columns],
            "filters": copy.deepcopy(self.filters),
            "sort": self.sort.to_dict(),
            "pageSize": self.page_size,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TableSettings:
        sort = data.get("sort") or {}
        return cls(
            id=str(data["id"]),
            user_id=data.get("userId"),
            columns=[ColumnSettings.from_dict(c) for c in data.get("columns") or []],
            filters=dict(data.get("filters") or {}),
            sort=SortSettings(column=sort.get("column", "created"), direction=sort.get("direction", "desc")),
            page_size=int(data.get("pageSize", 25)),
            last_updated=float(data.get("lastUpdated") or 0.0),
        )


def _cols(*specs: tuple[str, int]) -> list[dict[str, Any]]:
    return [{"key": key, "width": width, "visible": True, "order": idx} for idx, (key, width) in enumerate(specs)]


BUILTIN_TABLE_DEFAULTS: dict[str, dict[str, Any]] = {
    "in-progress": {
        "columns": _cols(
            ("key", 120),
            ("summary", 300),
            ("assignee", 150),
            ("status", 120),
            ("priority", 100),
            ("created", 120),
            ("updated", 120),
        ),
        "sort": {"column": "updated", "direction": "desc"},
        "pageSize": 50,
    },
    "awaiting-prod": {
        "columns": _cols(
            ("key", 120),
            ("summary", 350),
            ("assignee", 150),
            ("resolution_date", 120),
            ("priority", 100),
        ),
        "sort": {"column": "resolution_date", "direction": "desc"},
        "pageSize": 25,
    },
    "to-take": {
        "columns": _cols(
            ("key", 120),
            ("summary", 400),
            ("priority", 100),
            ("created", 120),
            ("labels", 200),
        ),
        "sort": {"column": "created", "direction": "desc"},
        "pageSize": 30,
    },
    "more-info-request": {
        "columns": _cols(
            ("key", 120),
            ("summary", 350),
            ("status", 140),
            ("issuetype", 100),
            ("priority", 80),
            ("assignee", 100),
            ("created", 140),
        ),
        "sort": {"column": "created", "direction": "desc"},
        "pageSize": 25,
    },
}

_CACHE: dict[str, dict[str, Any]] | None = None


def load_table_defaults(base_path: str | Path | None = None, *, reload: bool = False) -> dict[str, dict[str, Any]]:
    global _CACHE
    if _CACHE is not None and not reload:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "tables.yaml"
    defaults = copy.deepcopy(BUILTIN_TABLE_DEFAULTS)
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
        except yaml.YAMLError as exc:
            logger.warning("Ignoring unreadable %s: %s", yaml_path, exc)
            data = {}
        for table_type, override in (data.get("tables") or {}).items():
            if table_type in defaults and isinstance(override, dict):
                defaults[table_type].update(override)
    _CACHE = defaults
    return _CACHE


def default_settings(table_type: str, user_id: str | None = None) -> TableSettings:
    defaults = load_table_defaults()
    if table_type not in defaults:
        raise ValueError(f"Unknown table type: {table_type}")
    payload = copy.deepcopy(defaults[table_type])
    payload.update({"id": table_type, "userId": user_id, "filters": payload.get("filters") or {}})
    settings = TableSettings.from_dict(payload)
    settings.touch()
    return settings
