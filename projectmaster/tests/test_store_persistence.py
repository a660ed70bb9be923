import json

from projectmaster.core.store import actions as a
from projectmaster.core.store.persistence import FileStorage, MemoryStorage, load_state, save_state
from projectmaster.core.store.store import Store
from projectmaster.domain.models import Project
from projectmaster.domain.state import AppState


def test_dispatch_persists_only_persistent_fields(store, storage, owner, project):
    store.dispatch(a.SetUser(user=owner))
    store.dispatch(a.AddProject(project=project))
    store.dispatch(a.ToggleCreateGroupModal(open=True))

    blob = json.loads(storage.get_item("test_state"))
    assert [p["id"] for p in blob["projects"]] == [project.id]
    assert "projectManagerIds" in blob["projects"][0]
    assert "currentUser" not in blob
    assert "uiCreateGroupModalOpen" not in blob


def test_store_hydrates_from_saved_blob(storage, project):
    first = Store(storage, storage_key="test_state")
    first.dispatch(a.AddProject(project=project))

    second = Store(storage, storage_key="test_state")
    assert second.state.find_project(project.id) == project
    assert second.state.current_user is None


def test_corrupted_blob_falls_back_to_empty_state():
    storage = MemoryStorage({"test_state": "{not json at all"})
    store = Store(storage, storage_key="test_state")
    assert store.state == AppState()


def test_undecodable_file_falls_back_to_empty_state(tmp_path):
    (tmp_path / "test_state.json").write_bytes(b"\xff\xfe\x00garbage\x80")
    store = Store(FileStorage(tmp_path), storage_key="test_state")
    assert store.state == AppState()


def test_invalid_shape_falls_back_to_empty_state():
    storage = MemoryStorage({"test_state": json.dumps({"projects": [{"id": "p-1"}]})})
    store = Store(storage, storage_key="test_state")
    assert store.state.projects == ()


def test_old_blob_missing_collections_gets_defaults():
    blob = {"projects": [{"id": "p-1", "name": "Legacy", "ownerId": "u-owner"}]}
    storage = MemoryStorage({"test_state": json.dumps(blob)})
    store = Store(storage, storage_key="test_state")
    project = store.state.find_project("p-1")
    assert project.project_manager_ids == ()
    assert project.contractor_ids == ()
    assert store.state.tasks == ()


def test_write_failure_is_logged_not_raised(project, caplog):
    class FullStorage(MemoryStorage):
        def set_item(self, key, value):
            raise OSError("quota exceeded")

    store = Store(FullStorage(), storage_key="test_state")
    state = store.dispatch(a.AddProject(project=project))
    assert state.find_project(project.id) is not None
    assert "Failed to persist state" in caplog.text


def test_file_storage_roundtrip(tmp_path, project):
    storage = FileStorage(tmp_path)
    state = AppState(projects=(project,))
    assert save_state(storage, state, "pm_test") is True
    assert (tmp_path / "pm_test.json").exists()

    loaded = load_state(storage, "pm_test")
    assert loaded.projects == (project,)

    storage.remove_item("pm_test")
    assert load_state(storage, "pm_test") is None


def test_listeners_see_each_action_in_order(store, owner):
    seen = []
    unsubscribe = store.subscribe(lambda state, action: seen.append((action.type, len(state.projects))))

    store.dispatch(a.AddProject(project=Project(id="p-1", name="A", owner_id=owner.id)))
    store.dispatch(a.AddProject(project=Project(id="p-2", name="B", owner_id=owner.id)))
    unsubscribe()
    store.dispatch(a.DeleteProject(project_id="p-1"))

    assert seen == [("add_project", 1), ("add_project", 2)]


def test_failing_listener_does_not_break_dispatch(store, project):
    def broken(state, action):
        raise RuntimeError("boom")

    store.subscribe(broken)
    state = store.dispatch(a.AddProject(project=project))
    assert state.find_project(project.id) is not None
