import json

import pytest

from tracker import board
from tracker.config import DELETE_CASCADE, DELETE_UNASSIGN
from tracker.errors import CSVImportError, ValidationError
from tracker.models import Document, FeatureArea, Release, Task
from tracker.views import VIEW_BY_RELEASE, VIEW_ALL, SORT_FEATURE_AREA


def _clock():
    return 42


def _state():
    doc = Document(
        releases=[Release(id="r1", name="R1", date="2024-01-01"), Release(id="r2", name="R2")],
        feature_areas=[FeatureArea(id="f1", name="F1")],
        tasks=[
            Task(id="t1", name="a", release_id="r1", feature_area_id="f1"),
            Task(id="t2", name="b", release_id="r2", feature_area_id="f1"),
            Task(id="t3", name="c", release_id="r1", feature_area_id=None),
        ],
    )
    return board.AppState(document=doc)


def test_add_task_gets_new_id_and_subtasks():
    state = board.upsert_task(
        _state(),
        board.TaskForm(
            name="  new  ",
            status="In Progress",
            release_id="r2",
            feature_area_id="",
            subtasks=[("first", True), ("   ", False), ("second", False)],
        ),
        clock=_clock,
    )
    task = state.document.tasks[-1]
    assert task.id == "task-42"
    assert task.name == "new"
    assert task.feature_area_id is None
    assert [(s.name, s.status) for s in task.subtasks] == [("first", "Complete"), ("second", "Not Started")]


def test_edit_task_keeps_position_and_id():
    state = board.upsert_task(_state(), board.TaskForm(id="t2", name="renamed", release_id="r1"))
    assert [t.id for t in state.document.tasks] == ["t1", "t2", "t3"]
    assert state.document.tasks[1].name == "renamed"
    assert state.document.tasks[1].release_id == "r1"


def test_blank_name_is_rejected():
    with pytest.raises(ValidationError):
        board.upsert_task(_state(), board.TaskForm(name="  "))
    with pytest.raises(ValidationError):
        board.upsert_release(_state(), board.ReleaseForm(name=""))


def test_delete_task():
    state = board.delete_task(_state(), "t1")
    assert [t.id for t in state.document.tasks] == ["t2", "t3"]


def test_delete_release_cascades():
    state = board.delete_release(_state(), "r1", policy=DELETE_CASCADE)
    assert [r.id for r in state.document.releases] == ["r2"]
    assert [t.id for t in state.document.tasks] == ["t2"]


def test_delete_release_unassign_keeps_tasks():
    state = board.delete_release(_state(), "r1", policy=DELETE_UNASSIGN)
    assert [t.id for t in state.document.tasks] == ["t1", "t2", "t3"]
    assert [t.release_id for t in state.document.tasks] == [None, "r2", None]


def test_delete_feature_area_cascades():
    state = board.delete_feature_area(_state(), "f1")
    assert [t.id for t in state.document.tasks] == ["t3"]
    assert state.document.feature_areas == []


def test_delete_feature_area_unassign():
    state = board.delete_feature_area(_state(), "f1", policy=DELETE_UNASSIGN)
    assert [t.feature_area_id for t in state.document.tasks] == [None, None, None]


def test_unknown_delete_policy():
    with pytest.raises(ValidationError):
        board.delete_release(_state(), "r1", policy="archive")


def test_upsert_release_and_feature_area():
    state = board.upsert_release(
        _state(), board.ReleaseForm(name="R3", date="2024-05-01", launch_month="2024-06", color="#fff"), clock=_clock
    )
    assert state.document.releases[-1].to_dict() == {
        "id": "release-42",
        "name": "R3",
        "date": "2024-05-01",
        "launchMonth": "2024-06",
        "color": "#fff",
    }
    state = board.upsert_release(state, board.ReleaseForm(id="r1", name="R1b"))
    assert state.document.releases[0].name == "R1b"
    assert state.document.releases[0].date == ""

    state = board.upsert_feature_area(state, board.FeatureAreaForm(name="F2"), clock=_clock)
    assert state.document.feature_areas[-1].id == "feature-42"
    state = board.upsert_feature_area(state, board.FeatureAreaForm(id="f1", name="F1b", color="#000"))
    assert state.document.feature_areas[0].color == "#000"


def test_deleting_filtered_release_moves_filter():
    state = board.set_view(_state(), VIEW_BY_RELEASE, SORT_FEATURE_AREA, "r1")
    assert state.filter_value == "r1"
    state = board.delete_release(state, "r1")
    assert state.filter_value == "r2"


def test_set_view_validates():
    with pytest.raises(ValidationError):
        board.set_view(_state(), "kanban", SORT_FEATURE_AREA)
    state = board.set_view(_state(), VIEW_ALL, SORT_FEATURE_AREA, "r1")
    assert state.filter_value is None


def test_import_replaces_document(sample_csv):
    state = board.import_csv(_state(), sample_csv, now_ms=1)
    assert [t.name for t in state.document.tasks] == ["Parent", "Orphan"]


def test_failed_import_raises():
    with pytest.raises(CSVImportError):
        board.import_csv(_state(), "Name\n")


def test_clear_and_export():
    state = board.clear(_state())
    assert state.document.is_empty()
    assert json.loads(board.export_json(state.document)) == {"releases": [], "featureAreas": [], "tasks": []}
    assert "\n  " in board.export_json(_state().document)
