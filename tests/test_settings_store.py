import json

from kpi_app.core.settings_store import (
    FirestoreTableSettingsRepository,
    LocalTableSettingsRepository,
    TableSettingsController,
    create_table_settings_repository,
    settings_id,
)
from kpi_app.core.table_settings import SortSettings, default_settings


class FakeSnapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data)


class FakeDocument:
    def __init__(self, store, doc_id):
        self.store = store
        self.doc_id = doc_id

    def get(self):
        return FakeSnapshot(self.store.get(self.doc_id))

    def set(self, data):
        self.store[self.doc_id] = dict(data)

    def delete(self):
        self.store.pop(self.doc_id, None)


class FakeCollection:
    def __init__(self, store):
        self.store = store

    def document(self, doc_id):
        return FakeDocument(self.store, doc_id)


class FakeFirestore:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return FakeCollection(self.collections.setdefault(name, {}))


class UnavailableRepo(FirestoreTableSettingsRepository):
    def is_available(self):
        return False


class BrokenRepo(LocalTableSettingsRepository):
    def get(self, table_type, user_id=None):
        raise OSError("disk gone")


def test_settings_id():
    assert settings_id("to-take", "alice") == "to-take-alice"
    assert settings_id("in-progress") == "in-progress"


def test_local_repository_round_trip(tmp_path):
    repo = LocalTableSettingsRepository(tmp_path)
    assert repo.get("to-take", "alice") is None
    settings = default_settings("to-take", "alice")
    settings.page_size = 15
    repo.put(settings)
    loaded = repo.get("to-take", "alice")
    assert loaded.page_size == 15
    assert repo.get("to-take", "bob") is None
    repo.delete("to-take", "alice")
    assert repo.get("to-take", "alice") is None


def test_local_repository_unreadable_file(tmp_path):
    repo = LocalTableSettingsRepository(tmp_path, prefix="t")
    repo.put(default_settings("to-take", "alice"))
    path = next(tmp_path.glob("t-*.json"))
    path.write_text("{not json")
    assert repo.get("to-take", "alice") is None


def test_local_repository_file_format(tmp_path):
    repo = LocalTableSettingsRepository(tmp_path, prefix="t")
    repo.put(default_settings("awaiting-prod", "alice@example.com"))
    payload = json.loads((tmp_path / "t-awaiting-prod-alice@example.com.json").read_text())
    assert payload["id"] == "awaiting-prod"
    assert payload["sort"] == {"column": "resolution_date", "direction": "desc"}


def test_firestore_repository_round_trip():
    client = FakeFirestore()
    repo = FirestoreTableSettingsRepository(client, collection="settings")
    settings = default_settings("in-progress")
    repo.put(settings)
    stored = client.collections["settings"]["in-progress"]
    assert stored["docId"] == "in-progress"
    assert repo.get("in-progress").sort.column == "updated"
    repo.delete("in-progress")
    assert repo.get("in-progress") is None


def test_factory_falls_back_to_local(tmp_path):
    local = LocalTableSettingsRepository(tmp_path)
    assert create_table_settings_repository(True, firestore_repo=UnavailableRepo(FakeFirestore()), local_repo=local) is local
    remote = FirestoreTableSettingsRepository(FakeFirestore())
    assert create_table_settings_repository(True, firestore_repo=remote, local_repo=local) is remote
    assert create_table_settings_repository(False, firestore_repo=remote, local_repo=local) is local


def test_controller_global_table_ignores_user(tmp_path):
    client = FakeFirestore()
    controller = TableSettingsController(
        firestore_repo=FirestoreTableSettingsRepository(client, collection="settings"),
        local_repo=LocalTableSettingsRepository(tmp_path),
    )
    controller.update_page_size("in-progress", 10, "alice")
    assert list(client.collections["settings"]) == ["in-progress"]
    assert controller.get("in-progress", "bob").page_size == 10


def test_controller_per_user_tables(tmp_path):
    controller = TableSettingsController(
        firestore_repo=UnavailableRepo(FakeFirestore()),
        local_repo=LocalTableSettingsRepository(tmp_path),
    )
    controller.update_sort("to-take", SortSettings("priority", "asc"), "alice")
    assert controller.get("to-take", "alice").sort.ascending
    assert controller.get("to-take", "bob").sort.column == "created"


def test_controller_column_updates(tmp_path):
    controller = TableSettingsController(local_repo=LocalTableSettingsRepository(tmp_path))
    controller.update_column_width("to-take", "summary", 250, "alice")
    controller.toggle_column_visibility("to-take", "labels", "alice")
    settings = controller.reorder_columns("to-take", ["summary", "key"], "alice")
    assert settings.column("summary").width == 250
    assert not settings.column("labels").visible
    assert settings.visible_columns()[:2] == ["summary", "key"]
    assert controller.get("to-take", "alice").visible_columns()[:2] == ["summary", "key"]


def test_controller_filters_and_reset(tmp_path):
    controller = TableSettingsController(local_repo=LocalTableSettingsRepository(tmp_path))
    controller.update_filters("awaiting-prod", {"priority": ["High"]}, "alice")
    assert controller.get("awaiting-prod", "alice").filters == {"priority": ["High"]}
    reset = controller.reset_to_defaults("awaiting-prod", "alice")
    assert reset.filters == {}
    assert controller.get("awaiting-prod", "alice").filters == {}


def test_controller_read_failure_returns_defaults(tmp_path):
    controller = TableSettingsController(local_repo=BrokenRepo(tmp_path))
    assert controller.get("to-take", "alice").page_size == default_settings("to-take").page_size
