"""Table settings persistence: Firestore when configured, local JSON otherwise."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

from .config import FIRESTORE_SETTINGS_COLLECTION, LOCAL_SETTINGS_DIR, LOCAL_SETTINGS_PREFIX
from .table_settings import (
    STORAGE_FIRESTORE,
    TABLE_STORAGE_CONFIG,
    ColumnSettings,
    SortSettings,
    TableSettings,
    default_settings,
)

logger = logging.getLogger(__name__)


def settings_id(table_type: str, user_id: str | None = None) -> str:
    return f"{table_type}-{user_id}" if user_id else table_type


class TableSettingsRepository(Protocol):
    def is_available(self) -> bool: ...

    def get(self, table_type: str, user_id: str | None = None) -> TableSettings | None: ...

    def put(self, settings: TableSettings) -> None: ...

    def delete(self, table_type: str, user_id: str | None = None) -> None: ...


# ---------------------------------------------------------------------------
# Firestore
# ---------------------------------------------------------------------------
def _firestore_client_from_secrets():
    import firebase_admin
    import streamlit as st
    from firebase_admin import credentials, firestore

    if not firebase_admin._apps:
        cred = credentials.Certificate(dict(st.secrets["firebase"]))
        firebase_admin.initialize_app(cred)
    return firestore.client()


class FirestoreTableSettingsRepository:
    """Settings documents in a Firestore collection keyed by ``settings_id``."""

    def __init__(self, client: Any = None, collection: str = FIRESTORE_SETTINGS_COLLECTION):
        self._client = client
        self.collection = collection

    def _db(self):
        if self._client is None:
            self._client = _firestore_client_from_secrets()
        return self._client

    def is_available(self) -> bool:
        try:
            self._db()
        except Exception as exc:
            logger.info("Firestore unavailable: %s", exc)
            return False
        return True

    def _doc(self, doc_id: str):
        return self._db().collection(self.collection).document(doc_id)

    def get(self, table_type: str, user_id: str | None = None) -> TableSettings | None:
        snapshot = self._doc(settings_id(table_type, user_id)).get()
        if not snapshot.exists:
            return None
        payload = snapshot.to_dict() or {}
        payload.pop("docId", None)
        logger.debug("Loaded %s settings from Firestore", table_type)
        return TableSettings.from_dict(payload)

    def put(self, settings: TableSettings) -> None:
        settings.touch()
        doc_id = settings_id(settings.id, settings.user_id)
        self._doc(doc_id).set({"docId": doc_id, **settings.to_dict()})
        logger.debug("Saved %s settings to Firestore", settings.id)

    def delete(self, table_type: str, user_id: str | None = None) -> None:
        self._doc(settings_id(table_type, user_id)).delete()


# ---------------------------------------------------------------------------
# Local JSON files
# ---------------------------------------------------------------------------
class LocalTableSettingsRepository:
    """One JSON file per settings document under ``base_dir``."""

    def __init__(self, base_dir: str | Path = LOCAL_SETTINGS_DIR, prefix: str = LOCAL_SETTINGS_PREFIX):
        self.base_dir = Path(base_dir)
        self.prefix = prefix

    def _path(self, table_type: str, user_id: str | None) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.@-]+", "_", settings_id(table_type, user_id))
        return self.base_dir / f"{self.prefix}-{safe}.json"

    def is_available(self) -> bool:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Local settings directory %s not writable: %s", self.base_dir, exc)
            return False
        return True

    def get(self, table_type: str, user_id: str | None = None) -> TableSettings | None:
        path = self._path(table_type, user_id)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return TableSettings.from_dict(payload)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Unreadable settings file %s: %s", path, exc)
            return None

    def put(self, settings: TableSettings) -> None:
        settings.touch()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(settings.id, settings.user_id)
        path.write_text(json.dumps(settings.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

    def delete(self, table_type: str, user_id: str | None = None) -> None:
        self._path(table_type, user_id).unlink(missing_ok=True)


def create_table_settings_repository(
    prefer_firestore: bool = False,
    *,
    firestore_repo: TableSettingsRepository | None = None,
    local_repo: TableSettingsRepository | None = None,
) -> TableSettingsRepository:
    if prefer_firestore:
        remote = firestore_repo or FirestoreTableSettingsRepository()
        if remote.is_available():
            logger.info("Using Firestore table settings repository")
            return remote
    logger.info("Using local table settings repository")
    return local_repo or LocalTableSettingsRepository()


class TableSettingsController:
    """Read/modify/write helpers over the repository chosen per table type."""

    def __init__(
        self,
        firestore_repo: TableSettingsRepository | None = None,
        local_repo: TableSettingsRepository | None = None,
    ):
        self._firestore_repo = firestore_repo
        self._local_repo = local_repo or LocalTableSettingsRepository()
        self._resolved: dict[str, TableSettingsRepository] = {}

    def _config(self, table_type: str):
        config = TABLE_STORAGE_CONFIG.get(table_type)
        if config is None:
            raise ValueError(f"Unknown table type: {table_type}")
        return config

    def repository(self, table_type: str) -> TableSettingsRepository:
        config = self._config(table_type)
        if config.storage_type not in self._resolved:
            self._resolved[config.storage_type] = create_table_settings_repository(
                config.storage_type == STORAGE_FIRESTORE,
                firestore_repo=self._firestore_repo,
                local_repo=self._local_repo,
            )
        return self._resolved[config.storage_type]

    def _effective_user(self, table_type: str, user_id: str | None) -> str | None:
        return None if self._config(table_type).is_global else user_id

    def get(self, table_type: str, user_id: str | None = None) -> TableSettings:
        """Stored settings, or the defaults when none exist or the store fails."""
        effective = self._effective_user(table_type, user_id)
        try:
            stored = self.repository(table_type).get(table_type, effective)
        except Exception as exc:
            logger.warning("Falling back to default %s settings: %s", table_type, exc)
            stored = None
        return stored or default_settings(table_type, effective)

    def save(self, settings: TableSettings) -> None:
        settings.user_id = self._effective_user(settings.id, settings.user_id)
        self.repository(settings.id).put(settings)

    def update_columns(self, table_type: str, columns: list[ColumnSettings], user_id: str | None = None) -> TableSettings:
        settings = self.get(table_type, user_id)
        settings.columns = columns
        self.save(settings)
        return settings

    def update_filters(self, table_type: str, filters: dict[str, Any], user_id: str | None = None) -> TableSettings:
        settings = self.get(table_type, user_id)
        settings.filters = dict(filters)
        self.save(settings)
        return settings

    def update_sort(self, table_type: str, sort: SortSettings, user_id: str | None = None) -> TableSettings:
        settings = self.get(table_type, user_id)
        settings.sort = sort
        self.save(settings)
        return settings

    def update_page_size(self, table_type: str, page_size: int, user_id: str | None = None) -> TableSettings:
        settings = self.get(table_type, user_id)
        settings.page_size = int(page_size)
        self.save(settings)
        return settings

    def update_column_width(
        self, table_type: str, column_key: str, width: int, user_id: str | None = None
    ) -> TableSettings:
        settings = self.get(table_type, user_id)
        column = settings.column(column_key)
        if column is not None:
            column.width = int(width)
            self.save(settings)
        return settings

    def toggle_column_visibility(self, table_type: str, column_key: str, user_id: str | None = None) -> TableSettings:
        settings = self.get(table_type, user_id)
        column = settings.column(column_key)
        if column is not None:
            column.visible = not column.visible
            self.save(settings)
        return settings

    def reorder_columns(self, table_type: str, column_keys: list[str], user_id: str | None = None) -> TableSettings:
        settings = self.get(table_type, user_id)
        for index, key in enumerate(column_keys):
            column = settings.column(key)
            if column is not None:
                column.order = index
        settings.columns.sort(key=lambda c: c.order)
        self.save(settings)
        return settings

    def reset_to_defaults(self, table_type: str, user_id: str | None = None) -> TableSettings:
        effective = self._effective_user(table_type, user_id)
        self.repository(table_type).delete(table_type, effective)
        return default_settings(table_type, effective)
