"""Board state and the edits a user can make to it.

All operations take an ``AppState`` and return a new one; the caller decides
when to persist (the UI saves after every mutation).
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Tuple

from tracker.config import DELETE_CASCADE, DELETE_POLICIES, DELETE_UNASSIGN
from tracker.csv_import import import_csv as _import_document
from tracker.errors import ValidationError
from tracker.models import (
    COMPLETE,
    NOT_STARTED,
    Document,
    FeatureArea,
    Release,
    Task,
)
from tracker.views import SORT_MODES, SORT_RELEASE_DATE, VIEW_ALL, VIEW_MODES, resolve_filter

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "work_tracker_data.json"


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str, clock: Callable[[], int] = _now_ms) -> str:
    return f"{prefix}-{clock()}"


@dataclass
class AppState:
    document: Document = field(default_factory=Document.empty)
    view_mode: str = VIEW_ALL
    sort_mode: str = SORT_RELEASE_DATE
    filter_value: Optional[str] = None


# ---------------- Form records ----------------

@dataclass
class TaskForm:
    name: str
    status: str = NOT_STARTED
    release_id: Optional[str] = None
    feature_area_id: Optional[str] = None
    notes: str = ""
    subtasks: Sequence[Tuple[str, bool]] = ()
    id: Optional[str] = None


@dataclass
class ReleaseForm:
    name: str
    date: str = ""
    launch_month: str = ""
    color: Optional[str] = None
    id: Optional[str] = None


@dataclass
class FeatureAreaForm:
    name: str
    color: Optional[str] = None
    id: Optional[str] = None


def _required_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required")
    return cleaned


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def subtasks_from_rows(rows: Sequence[Tuple[str, bool]]) -> List[Task]:
    """Subtask editor rows -> tasks; blank names dropped, checked means complete."""
    subtasks: List[Task] = []
    for name, done in rows:
        if not (name or "").strip():
            continue
        subtasks.append(Task(id="", name=name, status=COMPLETE if done else NOT_STARTED))
    return subtasks


def _with_document(state: AppState, document: Document) -> AppState:
    # Drop a filter that no longer points at anything.
    return replace(
        state,
        document=document,
        filter_value=resolve_filter(document, state.view_mode, state.filter_value),
    )


# ---------------- Bulk operations ----------------

def import_csv(state: AppState, text: str, now_ms: Optional[int] = None) -> AppState:
    """Replace the whole document with an imported one.

    CSVImportError propagates before anything changes.
    """
    document = _import_document(text, now_ms=now_ms)
    logger.info("Document replaced by CSV import tasks=%s", len(document.tasks))
    return _with_document(state, document)


def clear(state: AppState) -> AppState:
    logger.info("Document cleared")
    return _with_document(state, Document.empty())


def export_json(document: Document) -> str:
    return json.dumps(document.to_dict(), indent=2)


def set_view(
    state: AppState,
    view_mode: str,
    sort_mode: str,
    filter_value: Optional[str] = None,
) -> AppState:
    if view_mode not in VIEW_MODES:
        raise ValidationError(f"Unknown view mode: {view_mode}")
    if sort_mode not in SORT_MODES:
        raise ValidationError(f"Unknown sort mode: {sort_mode}")
    return replace(
        state,
        view_mode=view_mode,
        sort_mode=sort_mode,
        filter_value=resolve_filter(state.document, view_mode, filter_value),
    )


# ---------------- Tasks ----------------

def upsert_task(state: AppState, form: TaskForm, clock: Callable[[], int] = _now_ms) -> AppState:
    name = _required_name(form.name)
    subtasks = subtasks_from_rows(form.subtasks)
    tasks = list(state.document.tasks)

    existing = next((i for i, t in enumerate(tasks) if form.id and t.id == form.id), None)
    if existing is not None:
        tasks[existing] = replace(
            tasks[existing],
            name=name,
            status=form.status or NOT_STARTED,
            release_id=_blank_to_none(form.release_id),
            feature_area_id=_blank_to_none(form.feature_area_id),
            notes=form.notes or "",
            subtasks=subtasks,
        )
    else:
        tasks.append(
            Task(
                id=new_id("task", clock),
                name=name,
                status=form.status or NOT_STARTED,
                release_id=_blank_to_none(form.release_id),
                feature_area_id=_blank_to_none(form.feature_area_id),
                notes=form.notes or "",
                subtasks=subtasks,
            )
        )
    return _with_document(state, replace(state.document, tasks=tasks))


def delete_task(state: AppState, task_id: str) -> AppState:
    tasks = [t for t in state.document.tasks if t.id != task_id]
    return _with_document(state, replace(state.document, tasks=tasks))


# ---------------- Releases ----------------

def upsert_release(state: AppState, form: ReleaseForm, clock: Callable[[], int] = _now_ms) -> AppState:
    name = _required_name(form.name)
    releases = list(state.document.releases)
    existing = next((i for i, r in enumerate(releases) if form.id and r.id == form.id), None)
    if existing is not None:
        releases[existing] = replace(
            releases[existing],
            name=name,
            date=form.date or "",
            launch_month=form.launch_month or "",
            color=form.color or releases[existing].color,
        )
    else:
        releases.append(
            Release(
                id=new_id("release", clock),
                name=name,
                date=form.date or "",
                launch_month=form.launch_month or "",
                color=form.color or None,
            )
        )
    return _with_document(state, replace(state.document, releases=releases))


def _check_policy(policy: str) -> str:
    if policy not in DELETE_POLICIES:
        raise ValidationError(f"Unknown delete policy: {policy}")
    return policy


def delete_release(state: AppState, release_id: str, policy: str = DELETE_CASCADE) -> AppState:
    """Remove a release and, under the cascade policy, every task assigned to it."""
    _check_policy(policy)
    doc = state.document
    releases = [r for r in doc.releases if r.id != release_id]
    if policy == DELETE_UNASSIGN:
        tasks = [replace(t, release_id=None) if t.release_id == release_id else t for t in doc.tasks]
    else:
        tasks = [t for t in doc.tasks if t.release_id != release_id]
    logger.info(
        "Release deleted id=%s policy=%s tasks_removed=%s",
        release_id,
        policy,
        len(doc.tasks) - len(tasks),
    )
    return _with_document(state, replace(doc, releases=releases, tasks=tasks))


# ---------------- Feature areas ----------------

def upsert_feature_area(state: AppState, form: FeatureAreaForm, clock: Callable[[], int] = _now_ms) -> AppState:
    name = _required_name(form.name)
    areas = list(state.document.feature_areas)
    existing = next((i for i, f in enumerate(areas) if form.id and f.id == form.id), None)
    if existing is not None:
        areas[existing] = replace(areas[existing], name=name, color=form.color or areas[existing].color)
    else:
        areas.append(FeatureArea(id=new_id("feature", clock), name=name, color=form.color or None))
    return _with_document(state, replace(state.document, feature_areas=areas))


def delete_feature_area(state: AppState, feature_area_id: str, policy: str = DELETE_CASCADE) -> AppState:
    """Remove a feature area and, under the cascade policy, every task in it."""
    _check_policy(policy)
    doc = state.document
    areas = [f for f in doc.feature_areas if f.id != feature_area_id]
    if policy == DELETE_UNASSIGN:
        tasks = [
            replace(t, feature_area_id=None) if t.feature_area_id == feature_area_id else t
            for t in doc.tasks
        ]
    else:
        tasks = [t for t in doc.tasks if t.feature_area_id != feature_area_id]
    logger.info(
        "Feature area deleted id=%s policy=%s tasks_removed=%s",
        feature_area_id,
        policy,
        len(doc.tasks) - len(tasks),
    )
    return _with_document(state, replace(doc, feature_areas=areas, tasks=tasks))
