"""Board entities and the JSON document they persist as.

The JSON shape is the wire/storage format shared with the blob store:

    {"releases": [...], "featureAreas": [...], "tasks": [...]}

Keys are camelCase on the wire; attributes are snake_case in Python.
Root tasks live in ``Document.tasks``; subtasks are owned by their parent.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

NOT_STARTED = "Not Started"
IN_PROGRESS = "In Progress"
COMPLETE = "Complete"
COMPLETED = "Completed"

COMPLETE_STATUSES = (COMPLETE, COMPLETED)
FORM_STATUSES = [NOT_STARTED, IN_PROGRESS, COMPLETED]


def is_complete(status: Optional[str]) -> bool:
    return status in COMPLETE_STATUSES


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _list_of_dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


@dataclass
class Release:
    id: str
    name: str
    date: str = ""
    launch_month: str = ""
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "launchMonth": self.launch_month,
        }
        if self.color:
            d["color"] = self.color
        return d

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Release":
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            date=str(raw.get("date") or ""),
            launch_month=str(raw.get("launchMonth") or ""),
            color=raw.get("color") or None,
        )


@dataclass
class FeatureArea:
    id: str
    name: str
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.color:
            d["color"] = self.color
        return d

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FeatureArea":
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            color=raw.get("color") or None,
        )


@dataclass
class Task:
    id: str
    name: str
    release_id: Optional[str] = None
    feature_area_id: Optional[str] = None
    status: str = NOT_STARTED
    due_date: Optional[str] = None
    assignee: Optional[str] = None
    notes: str = ""
    subtasks: List["Task"] = field(default_factory=list)
    # Only meaningful while importing; kept so imported documents round-trip.
    parent_task_name: Optional[str] = None

    @property
    def complete(self) -> bool:
        return is_complete(self.status)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "releaseId": self.release_id,
            "featureAreaId": self.feature_area_id,
            "status": self.status,
            "dueDate": self.due_date,
            "assignee": self.assignee,
            "notes": self.notes,
            "subtasks": [s.to_dict() for s in self.subtasks],
        }
        if self.parent_task_name:
            d["parentTaskName"] = self.parent_task_name
        return d

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Task":
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            release_id=raw.get("releaseId") or None,
            feature_area_id=raw.get("featureAreaId") or None,
            status=str(raw.get("status") or NOT_STARTED),
            due_date=_opt_str(raw.get("dueDate")) or None,
            assignee=_opt_str(raw.get("assignee")) or None,
            notes=str(raw.get("notes") or ""),
            subtasks=[cls.from_dict(s) for s in _list_of_dicts(raw.get("subtasks"))],
            parent_task_name=raw.get("parentTaskName") or None,
        )


@dataclass
class Document:
    releases: List[Release] = field(default_factory=list)
    feature_areas: List[FeatureArea] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "Document":
        return cls()

    def is_empty(self) -> bool:
        return not (self.releases or self.feature_areas or self.tasks)

    def release(self, release_id: Optional[str]) -> Optional[Release]:
        if not release_id:
            return None
        return next((r for r in self.releases if r.id == release_id), None)

    def feature_area(self, feature_area_id: Optional[str]) -> Optional[FeatureArea]:
        if not feature_area_id:
            return None
        return next((f for f in self.feature_areas if f.id == feature_area_id), None)

    def task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "releases": [r.to_dict() for r in self.releases],
            "featureAreas": [f.to_dict() for f in self.feature_areas],
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "Document":
        """Build a document from decoded JSON; anything unusable becomes empty."""
        if not isinstance(raw, dict):
            return cls.empty()
        return cls(
            releases=[Release.from_dict(r) for r in _list_of_dicts(raw.get("releases"))],
            feature_areas=[FeatureArea.from_dict(f) for f in _list_of_dicts(raw.get("featureAreas"))],
            tasks=[Task.from_dict(t) for t in _list_of_dicts(raw.get("tasks"))],
        )


def empty_document_dict() -> Dict[str, List[Any]]:
    return {"releases": [], "featureAreas": [], "tasks": []}
