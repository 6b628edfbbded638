"""CSV import: turn an exported task sheet into a board document.

Import is a full replace. The sheet is denormalized (one row per task, the
release and feature area repeated by name on every row), so rows are
reconciled into releases and feature areas keyed by name, and tasks are
nested under their parent by the parent's *name*.

Recognized headers: Name, Task ID, Release Version, Feature Area,
Section/Column, Due Date, Parent task, Assignee, Notes, Comment, Comments.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import pandas as pd

from tracker.dates import is_later
from tracker.errors import CSVImportError
from tracker.models import NOT_STARTED, Document, FeatureArea, Release, Task

logger = logging.getLogger(__name__)

UNASSIGNED_RELEASE = "Unassigned Release"
UNASSIGNED_FEATURE_AREA = "Unassigned Feature Area"
NOTE_FIELDS = ("Notes", "Comment", "Comments")

Record = Dict[str, str]


def decode_csv_bytes(raw: bytes) -> str:
    """Decode an uploaded file, dropping a UTF-8 BOM if present."""
    return raw.decode("utf-8-sig", errors="replace")


def parse_csv_rows(text: str) -> List[List[str]]:
    """Split CSV text into rows of fields.

    Handles double-quoted fields, "" as an escaped quote inside quotes, and
    \\n, \\r or \\r\\n line endings. Newlines inside quotes are kept.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    buf: List[str] = []
    inside_quotes = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if ch == '"':
            if inside_quotes and nxt == '"':
                buf.append('"')
                i += 1
            else:
                inside_quotes = not inside_quotes
        elif ch == "," and not inside_quotes:
            row.append("".join(buf))
            buf = []
        elif ch in "\r\n" and not inside_quotes:
            if ch == "\r" and nxt == "\n":
                i += 1
            row.append("".join(buf))
            rows.append(row)
            row = []
            buf = []
        else:
            buf.append(ch)
        i += 1

    if buf or row:
        row.append("".join(buf))
        rows.append(row)
    return rows


def parse_csv(text: str) -> List[Record]:
    """Parse CSV text into header-keyed records.

    Raises:
        CSVImportError: when there is no data row after the header.
    """
    rows = parse_csv_rows(text or "")
    if len(rows) < 2:
        raise CSVImportError("CSV file appears to be empty or invalid.")

    headers = [h.strip() for h in rows[0]]
    records: List[Record] = []
    for row in rows[1:]:
        record: Record = {}
        for idx, header in enumerate(headers):
            record[header] = row[idx] if idx < len(row) else ""
        records.append(record)
    return records


def _notes(record: Record) -> str:
    return "\n\n".join(record[f] for f in NOTE_FIELDS if record.get(f))


@dataclass
class _Registry:
    releases: Dict[str, Release]
    feature_areas: Dict[str, FeatureArea]

    def release_for(self, name: str, due_date: str) -> Release:
        release = self.releases.get(name)
        if release is None:
            release = Release(
                id=f"release-{len(self.releases) + 1}",
                name=name,
                date=due_date or "",
                launch_month="",
            )
            self.releases[name] = release
        elif is_later(due_date, release.date):
            release.date = due_date
        return release

    def feature_area_for(self, name: str) -> FeatureArea:
        area = self.feature_areas.get(name)
        if area is None:
            area = FeatureArea(id=f"feature-{len(self.feature_areas) + 1}", name=name)
            self.feature_areas[name] = area
        return area


def _unique_id(task_id: str, seen: Set[str]) -> str:
    candidate, n = task_id, 1
    while candidate in seen:
        n += 1
        candidate = f"{task_id}-{n}"
    seen.add(candidate)
    return candidate


def _count_reachable(roots: List[Task]) -> int:
    seen: Set[int] = set()
    stack = list(roots)
    while stack:
        task = stack.pop()
        if id(task) in seen:
            continue
        seen.add(id(task))
        stack.extend(task.subtasks)
    return len(seen)


def _link_subtasks(flat: List[Task]) -> List[Task]:
    roots: List[Task] = []
    for task in flat:
        parent: Optional[Task] = None
        if task.parent_task_name:
            parent = next(
                (t for t in flat if t is not task and t.name == task.parent_task_name),
                None,
            )
        if parent is not None:
            parent.subtasks.append(task)
        else:
            roots.append(task)
    return roots


def reconcile(records: List[Record], now_ms: Optional[int] = None) -> Document:
    """Build a document from parsed records.

    Rows without a Name are skipped. Tasks naming a parent that exists are
    nested under it; unknown parents leave the task at the root. A repeated
    Task ID gets a numeric suffix (T-1, T-1-2, ...).
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    registry = _Registry(releases={}, feature_areas={})
    flat: List[Task] = []
    seen_ids: Set[str] = set()
    duplicates = 0
    skipped = 0

    for index, record in enumerate(records):
        name = record.get("Name") or ""
        if not name:
            skipped += 1
            continue

        due_date = record.get("Due Date") or ""
        release = registry.release_for(record.get("Release Version") or UNASSIGNED_RELEASE, due_date)
        area = registry.feature_area_for(record.get("Feature Area") or UNASSIGNED_FEATURE_AREA)

        raw_id = record.get("Task ID") or f"task-{now_ms}-{index}"
        task_id = _unique_id(raw_id, seen_ids)
        if task_id != raw_id:
            duplicates += 1

        flat.append(
            Task(
                id=task_id,
                name=name,
                release_id=release.id,
                feature_area_id=area.id,
                status=record.get("Section/Column") or NOT_STARTED,
                due_date=due_date or None,
                assignee=record.get("Assignee") or None,
                notes=_notes(record),
                parent_task_name=record.get("Parent task") or None,
            )
        )

    roots = _link_subtasks(flat)
    if duplicates:
        logger.warning("CSV repeated Task ID on %s rows; suffixed to keep ids unique", duplicates)
    unreachable = len(flat) - _count_reachable(roots)
    if unreachable:
        logger.warning("CSV parent links form a cycle; dropped %s unreachable tasks", unreachable)
    logger.info(
        "CSV reconciled tasks=%s roots=%s releases=%s feature_areas=%s skipped=%s",
        len(flat),
        len(roots),
        len(registry.releases),
        len(registry.feature_areas),
        skipped,
    )
    return Document(
        releases=list(registry.releases.values()),
        feature_areas=list(registry.feature_areas.values()),
        tasks=roots,
    )


def import_csv(text: str, now_ms: Optional[int] = None) -> Document:
    """Parse and reconcile CSV text into a fresh document."""
    return reconcile(parse_csv(text), now_ms=now_ms)


EXPORT_COLUMNS = [
    "Task ID",
    "Name",
    "Section/Column",
    "Release Version",
    "Feature Area",
    "Due Date",
    "Parent task",
    "Assignee",
    "Notes",
]


def document_to_csv(document: Document) -> str:
    """Write a document back out in the import format.

    Subtasks become rows whose Parent task is the parent's name. A subtask
    without its own release or feature area is written with its parent's.
    """
    rows: List[Record] = []

    def add(task: Task, parent: Optional[Task]) -> None:
        release = document.release(task.release_id)
        area = document.feature_area(task.feature_area_id)
        if parent is not None:
            release = release or document.release(parent.release_id)
            area = area or document.feature_area(parent.feature_area_id)
        rows.append(
            {
                "Task ID": task.id,
                "Name": task.name,
                "Section/Column": task.status,
                "Release Version": release.name if release else "",
                "Feature Area": area.name if area else "",
                "Due Date": task.due_date or "",
                "Parent task": parent.name if parent else "",
                "Assignee": task.assignee or "",
                "Notes": task.notes or "",
            }
        )
        for sub in task.subtasks:
            add(sub, task)

    for task in document.tasks:
        add(task, None)

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False, lineterminator="\n")
