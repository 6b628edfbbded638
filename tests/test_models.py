from tracker.models import Document, Task, empty_document_dict


def test_from_dict_tolerates_garbage():
    assert Document.from_dict(None).is_empty()
    assert Document.from_dict([1, 2]).is_empty()
    doc = Document.from_dict({"releases": "nope", "featureAreas": [1, {"id": "f", "name": "F"}], "tasks": None})
    assert doc.releases == []
    assert [f.id for f in doc.feature_areas] == ["f"]
    assert doc.tasks == []


def test_round_trip_keeps_wire_shape():
    raw = {
        "releases": [{"id": "r", "name": "R", "date": "2024-01-01", "launchMonth": "2024-02", "color": "#abc"}],
        "featureAreas": [{"id": "f", "name": "F"}],
        "tasks": [
            {
                "id": "t",
                "name": "T",
                "releaseId": "r",
                "featureAreaId": None,
                "status": "In Progress",
                "dueDate": None,
                "assignee": "al",
                "notes": "",
                "subtasks": [
                    {
                        "id": "",
                        "name": "s",
                        "releaseId": None,
                        "featureAreaId": None,
                        "status": "Complete",
                        "dueDate": None,
                        "assignee": None,
                        "notes": "",
                        "subtasks": [],
                    }
                ],
                "parentTaskName": "Other",
            }
        ],
    }
    assert Document.from_dict(raw).to_dict() == raw


def test_task_defaults():
    task = Task.from_dict({"id": "x", "name": "n"})
    assert task.status == "Not Started"
    assert not task.complete
    assert "parentTaskName" not in task.to_dict()
    assert Task(id="y", name="m", status="Completed").complete


def test_empty_document():
    assert Document.empty().to_dict() == empty_document_dict()
    assert Document().release(None) is None
