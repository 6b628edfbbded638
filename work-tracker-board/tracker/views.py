"""Projection of the board for display: filter, sort, group.

Nothing here mutates the document; every function returns new lists.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from tracker.colors import entity_color
from tracker.dates import format_month_year, parse_date
from tracker.models import (
    COMPLETE,
    IN_PROGRESS,
    NOT_STARTED,
    Document,
    FeatureArea,
    Release,
    Task,
    is_complete,
)

VIEW_ALL = "all"
VIEW_BY_FEATURE_AREA = "byFeatureArea"
VIEW_BY_RELEASE = "byRelease"
VIEW_MODES = (VIEW_ALL, VIEW_BY_FEATURE_AREA, VIEW_BY_RELEASE)

SORT_RELEASE_DATE = "releaseDate"
SORT_FEATURE_AREA = "featureArea"
SORT_MODES = (SORT_RELEASE_DATE, SORT_FEATURE_AREA)

UNASSIGNED = "Unassigned"
OTHER_BUCKET = "Other"
BUCKET_ORDER = (NOT_STARTED, IN_PROGRESS, COMPLETE)

Section = Tuple[Optional[str], List[Task]]


def filter_tasks(document: Document, view_mode: str, filter_value: Optional[str]) -> List[Task]:
    """Root tasks visible under the view; subtasks travel with their parent."""
    tasks = list(document.tasks)
    if not filter_value:
        return tasks
    if view_mode == VIEW_BY_FEATURE_AREA:
        return [t for t in tasks if t.feature_area_id == filter_value]
    if view_mode == VIEW_BY_RELEASE:
        return [t for t in tasks if t.release_id == filter_value]
    return tasks


def _date_key(release: Optional[Release]) -> Tuple[bool, date]:
    d = parse_date(release.date) if release else None
    return (d is None, d or date.min)


def _name_key(area: Optional[FeatureArea]) -> Tuple[bool, str]:
    return (area is None, area.name if area else "")


def sort_tasks(document: Document, tasks: Sequence[Task], sort_mode: str) -> List[Task]:
    """Stable sort by release date or feature area name; missing values last."""

    def key(task: Task):
        date_key = _date_key(document.release(task.release_id))
        name_key = _name_key(document.feature_area(task.feature_area_id))
        if sort_mode == SORT_FEATURE_AREA:
            return (name_key, date_key)
        return (date_key, name_key)

    return sorted(tasks, key=key)


def bucket_for(status: Optional[str]) -> str:
    if status in (NOT_STARTED, IN_PROGRESS):
        return status
    if is_complete(status):
        return COMPLETE
    return OTHER_BUCKET


def group_by_status(tasks: Sequence[Task]) -> List[Section]:
    """Fixed-order status buckets, empty ones dropped."""
    buckets = {label: [] for label in BUCKET_ORDER + (OTHER_BUCKET,)}
    for task in tasks:
        buckets[bucket_for(task.status)].append(task)
    return [(label, items) for label, items in buckets.items() if items]


def is_grouped(view_mode: str, filter_value: Optional[str]) -> bool:
    return view_mode == VIEW_BY_RELEASE and bool(filter_value)


def build_view(
    document: Document,
    view_mode: str = VIEW_ALL,
    sort_mode: str = SORT_RELEASE_DATE,
    filter_value: Optional[str] = None,
) -> List[Section]:
    """Filtered, sorted tasks as display sections.

    Grouped into status buckets for a filtered release view, otherwise a
    single unlabeled section.
    """
    tasks = sort_tasks(document, filter_tasks(document, view_mode, filter_value), sort_mode)
    if is_grouped(view_mode, filter_value):
        return group_by_status(tasks)
    return [(None, tasks)]


def ordered_subtasks(task: Task) -> List[Task]:
    return sorted(task.subtasks, key=lambda s: is_complete(s.status))


def filter_options(document: Document, view_mode: str) -> List[Tuple[str, str]]:
    if view_mode == VIEW_BY_FEATURE_AREA:
        return [(f.id, f.name) for f in document.feature_areas]
    if view_mode == VIEW_BY_RELEASE:
        return [(r.id, r.name) for r in document.releases]
    return []


def resolve_filter(document: Document, view_mode: str, current: Optional[str]) -> Optional[str]:
    """Keep the current filter while it is still an option, else the first option."""
    options = filter_options(document, view_mode)
    if not options:
        return None
    ids = [opt_id for opt_id, _ in options]
    return current if current in ids else ids[0]


def sorted_feature_areas(document: Document) -> List[FeatureArea]:
    return sorted(document.feature_areas, key=lambda f: f.name)


def sorted_releases(document: Document) -> List[Release]:
    return sorted(document.releases, key=_date_key)


@dataclass(frozen=True)
class TaskDisplay:
    release_name: str
    release_color: str
    release_month: str
    feature_area_name: str
    feature_area_color: str


def task_display(task: Task, document: Document) -> TaskDisplay:
    release = document.release(task.release_id)
    area = document.feature_area(task.feature_area_id)
    release_name = release.name if release else UNASSIGNED
    area_name = area.name if area else UNASSIGNED
    return TaskDisplay(
        release_name=release_name,
        release_color=entity_color(release, release_name),
        release_month=format_month_year(release.date) if release else "",
        feature_area_name=area_name,
        feature_area_color=entity_color(area, area_name),
    )


def tasks_to_df(tasks: Sequence[Task], document: Document) -> pd.DataFrame:
    """Flat table of root tasks for the grid view."""
    columns = ["id", "name", "status", "release", "release_month", "feature_area", "due_date", "assignee", "subtasks"]
    if not tasks:
        return pd.DataFrame(columns=columns)
    rows = []
    for t in tasks:
        disp = task_display(t, document)
        done = sum(1 for s in t.subtasks if is_complete(s.status))
        rows.append(
            {
                "id": t.id,
                "name": t.name,
                "status": t.status,
                "release": disp.release_name,
                "release_month": disp.release_month,
                "feature_area": disp.feature_area_name,
                "due_date": t.due_date or "",
                "assignee": t.assignee or "",
                "subtasks": f"{done}/{len(t.subtasks)}" if t.subtasks else "",
            }
        )
    df = pd.DataFrame(rows, columns=columns)
    df["due_date"] = pd.to_datetime(df["due_date"], errors="coerce").dt.date
    return df
