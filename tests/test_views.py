from tracker.dates import format_month_year, is_later, parse_date
from tracker.models import Document, FeatureArea, Release, Task
from tracker.views import (
    OTHER_BUCKET,
    SORT_FEATURE_AREA,
    SORT_RELEASE_DATE,
    VIEW_ALL,
    VIEW_BY_FEATURE_AREA,
    VIEW_BY_RELEASE,
    build_view,
    filter_options,
    ordered_subtasks,
    resolve_filter,
    sorted_feature_areas,
    sorted_releases,
    task_display,
    tasks_to_df,
)


def _doc():
    return Document(
        releases=[
            Release(id="r-late", name="Late", date="2024-09-01"),
            Release(id="r-early", name="Early", date="2024-02-01"),
            Release(id="r-none", name="Someday", date=""),
        ],
        feature_areas=[
            FeatureArea(id="f-z", name="Zeta"),
            FeatureArea(id="f-a", name="Alpha", color="#123456"),
        ],
        tasks=[
            Task(id="t1", name="one", release_id="r-late", feature_area_id="f-a", status="Not Started"),
            Task(id="t2", name="two", release_id="r-early", feature_area_id="f-z", status="In Progress"),
            Task(id="t3", name="three", release_id="r-none", feature_area_id=None, status="Complete"),
            Task(id="t4", name="four", release_id=None, feature_area_id="f-z", status="Completed"),
            Task(id="t5", name="five", release_id="r-early", feature_area_id="f-a", status="Blocked"),
        ],
    )


def test_all_view_sorted_by_release_date_undated_last():
    [(label, tasks)] = build_view(_doc(), VIEW_ALL, SORT_RELEASE_DATE)
    assert label is None
    # Ties fall back to feature area name, unassigned last.
    assert [t.id for t in tasks] == ["t5", "t2", "t1", "t4", "t3"]


def test_all_view_sorted_by_feature_area_unassigned_last():
    [(_, tasks)] = build_view(_doc(), VIEW_ALL, SORT_FEATURE_AREA)
    assert [t.id for t in tasks] == ["t5", "t1", "t2", "t4", "t3"]


def test_filter_by_feature_area_is_not_grouped():
    sections = build_view(_doc(), VIEW_BY_FEATURE_AREA, SORT_RELEASE_DATE, "f-z")
    assert len(sections) == 1
    assert [t.id for t in sections[0][1]] == ["t2", "t4"]


def test_release_view_groups_by_status_in_fixed_order():
    doc = _doc()
    for t in doc.tasks:
        t.release_id = "r-early"
    sections = build_view(doc, VIEW_BY_RELEASE, SORT_RELEASE_DATE, "r-early")
    assert [(label, [t.id for t in tasks]) for label, tasks in sections] == [
        ("Not Started", ["t1"]),
        ("In Progress", ["t2"]),
        ("Complete", ["t4", "t3"]),
        (OTHER_BUCKET, ["t5"]),
    ]


def test_release_view_drops_empty_buckets():
    sections = build_view(_doc(), VIEW_BY_RELEASE, SORT_RELEASE_DATE, "r-late")
    assert [label for label, _ in sections] == ["Not Started"]


def test_view_does_not_mutate_document():
    doc = _doc()
    before = [t.id for t in doc.tasks]
    build_view(doc, VIEW_ALL, SORT_FEATURE_AREA)
    assert [t.id for t in doc.tasks] == before


def test_filter_options_and_resolution():
    doc = _doc()
    assert filter_options(doc, VIEW_ALL) == []
    assert filter_options(doc, VIEW_BY_FEATURE_AREA) == [("f-z", "Zeta"), ("f-a", "Alpha")]
    assert resolve_filter(doc, VIEW_BY_RELEASE, "r-none") == "r-none"
    assert resolve_filter(doc, VIEW_BY_RELEASE, "gone") == "r-late"
    assert resolve_filter(doc, VIEW_ALL, "r-late") is None


def test_ordered_subtasks_puts_completed_last():
    task = Task(
        id="p",
        name="p",
        subtasks=[
            Task(id="", name="a", status="Complete"),
            Task(id="", name="b", status="Not Started"),
            Task(id="", name="c", status="Completed"),
            Task(id="", name="d", status="In Progress"),
        ],
    )
    assert [s.name for s in ordered_subtasks(task)] == ["b", "d", "a", "c"]


def test_management_lists():
    doc = _doc()
    assert [f.name for f in sorted_feature_areas(doc)] == ["Alpha", "Zeta"]
    assert [r.id for r in sorted_releases(doc)] == ["r-early", "r-late", "r-none"]


def test_task_display_uses_stored_color_and_unassigned():
    doc = _doc()
    disp = task_display(doc.tasks[0], doc)
    assert disp.release_name == "Late"
    assert disp.release_month == "September 2024"
    assert disp.feature_area_color == "#123456"

    missing = task_display(doc.tasks[3], doc)
    assert missing.release_name == "Unassigned"
    assert missing.release_month == ""


def test_tasks_to_df():
    doc = _doc()
    doc.tasks[0].subtasks = [Task(id="", name="s", status="Complete"), Task(id="", name="s2")]
    df = tasks_to_df(doc.tasks, doc)
    assert list(df["id"]) == ["t1", "t2", "t3", "t4", "t5"]
    assert df.loc[0, "subtasks"] == "1/2"
    assert tasks_to_df([], doc).empty


def test_dates():
    assert format_month_year("2024-06-15") == "June 2024"
    assert format_month_year("") == ""
    assert format_month_year("not a date") == ""
    assert parse_date("2024-06-15T10:00:00").isoformat() == "2024-06-15"
    assert is_later("2024-10-01", "2024-09-30")
    assert not is_later("", "2024-09-30")
    assert is_later("2024-01-01", "")
