"""Streamlit glue shared by the board pages.

Holds the ``AppState`` in ``st.session_state`` and pushes the document to the
store after every mutation.
"""
from __future__ import annotations

import hashlib
import html
import json
import logging
from typing import List, Optional, Tuple

import streamlit as st

from tracker import board
from tracker.config import get_config
from tracker.csv_import import decode_csv_bytes
from tracker.errors import CSVImportError
from tracker.logging_setup import setup_logging
from tracker.models import FORM_STATUSES, Document, Task, is_complete
from tracker.store_client import DocumentStoreClient
from tracker.views import TaskDisplay, ordered_subtasks

logger = logging.getLogger(__name__)

STATE_KEY = "wt_state"
STORE_KEY = "wt_store"
# Prefix of every add/edit/delete widget key; cleared when the document is replaced.
FORM_PREFIX = "wt-form-"


def init_session() -> board.AppState:
    """Load the document once per browser session."""
    if STORE_KEY not in st.session_state:
        cfg = get_config()
        setup_logging(cfg.log_level, cfg.log_dir)
        st.session_state[STORE_KEY] = DocumentStoreClient.from_config(cfg)
    if STATE_KEY not in st.session_state:
        store: DocumentStoreClient = st.session_state[STORE_KEY]
        st.session_state[STATE_KEY] = board.AppState(document=store.load())
    return st.session_state[STATE_KEY]


def get_state() -> board.AppState:
    return init_session()


def forget_forms() -> int:
    """Drop widget and subtask-editor state of every form.

    Called whenever the document is replaced so no form keeps showing (and
    later saving) values read from the previous document.
    """
    stale = [k for k in list(st.session_state.keys()) if str(k).startswith(FORM_PREFIX)]
    for k in stale:
        del st.session_state[k]
    return len(stale)


def form_key(*parts: object) -> str:
    return FORM_PREFIX + "-".join(str(p) for p in parts)


def task_form_key(task: Task, position: int) -> str:
    """Widget key base for a task row.

    The position keeps rows unique when ids repeat; the content digest gives
    a task fresh widgets whenever its stored content changes.
    """
    digest = hashlib.sha1(json.dumps(task.to_dict(), sort_keys=True).encode("utf-8")).hexdigest()[:10]
    return form_key("edit", position, task.id, digest)


def reload() -> board.AppState:
    store: DocumentStoreClient = st.session_state[STORE_KEY]
    state = get_state()
    st.session_state[STATE_KEY] = board.AppState(
        document=store.load(),
        view_mode=state.view_mode,
        sort_mode=state.sort_mode,
        filter_value=state.filter_value,
    )
    forget_forms()
    return st.session_state[STATE_KEY]


def set_state(state: board.AppState) -> None:
    """Replace view settings without persisting."""
    st.session_state[STATE_KEY] = state


def commit(state: board.AppState) -> bool:
    """Store the new state and save the document; shows a notice on failure."""
    st.session_state[STATE_KEY] = state
    forget_forms()
    store: DocumentStoreClient = st.session_state[STORE_KEY]
    result = store.save(state.document)
    if not result.ok:
        st.error(
            "Failed to save data to server. Please check if the server is running."
            f" ({result.error or result.status_code})"
        )
    return result.ok


def pill(label: str, color: str) -> str:
    return f'<span class="wt-pill" style="background-color:{html.escape(color)}">{html.escape(label)}</span>'


def render_empty_state() -> None:
    st.markdown(
        '<div class="wt-empty-state"><h3>No data found</h3>'
        "<p>Import a CSV file to get started or add items manually.</p></div>",
        unsafe_allow_html=True,
    )


def subtasks_html(task: Task) -> str:
    if not task.subtasks:
        return ""
    items = []
    for sub in ordered_subtasks(task):
        cls = "wt-subtask-item completed" if is_complete(sub.status) else "wt-subtask-item"
        items.append(
            f'<div class="{cls}"><span>{html.escape(sub.name)}</span> '
            f'<span class="wt-subtask-status">({html.escape(sub.status)})</span></div>'
        )
    return '<div class="wt-subtasks">' + "".join(items) + "</div>"


def task_info_html(task: Task) -> str:
    return (
        f'<div class="wt-task-name">{html.escape(task.name)}</div>'
        f'<div class="wt-task-status">{html.escape(task.status)}</div>'
        f"{subtasks_html(task)}"
    )


def display_cells(disp: TaskDisplay) -> Tuple[str, str, str]:
    return (
        pill(disp.release_name, disp.release_color),
        f'<span class="wt-muted">{html.escape(disp.release_month or "-")}</span>',
        pill(disp.feature_area_name, disp.feature_area_color),
    )


def _option_index(options: List[Optional[str]], value: Optional[str]) -> int:
    return options.index(value) if value in options else 0


def task_form(document: Document, task: Optional[Task], key: str) -> Optional[board.TaskForm]:
    """Render the add/edit task form; returns the submitted record or None."""
    release_ids: List[Optional[str]] = [None] + [r.id for r in document.releases]
    release_names = {r.id: r.name for r in document.releases}
    area_ids: List[Optional[str]] = [None] + [f.id for f in document.feature_areas]
    area_names = {f.id: f.name for f in document.feature_areas}

    current_status = task.status if task else FORM_STATUSES[0]
    if is_complete(current_status):
        current_status = FORM_STATUSES[-1]

    # Rows carry a stable uid so widget keys survive removing a row.
    rows_key = f"{key}-subtask-rows"
    if rows_key not in st.session_state:
        st.session_state[rows_key] = [
            (uid, s.name, is_complete(s.status)) for uid, s in enumerate(task.subtasks if task else [])
        ]

    name = st.text_input("Name", value=task.name if task else "", key=f"{key}-name")
    status = st.selectbox(
        "Status",
        FORM_STATUSES,
        index=_option_index(list(FORM_STATUSES), current_status),
        key=f"{key}-status",
    )
    release_id = st.selectbox(
        "Release",
        release_ids,
        index=_option_index(release_ids, task.release_id if task else None),
        format_func=lambda rid: release_names.get(rid, "Unassigned") if rid else "Unassigned",
        key=f"{key}-release",
    )
    feature_area_id = st.selectbox(
        "Feature Area",
        area_ids,
        index=_option_index(area_ids, task.feature_area_id if task else None),
        format_func=lambda fid: area_names.get(fid, "Unassigned") if fid else "Unassigned",
        key=f"{key}-feature",
    )
    notes = st.text_area("Notes", value=task.notes if task else "", key=f"{key}-notes")

    st.markdown("**Subtasks**")
    rows: List[Tuple[int, str, bool]] = []
    for uid, sub_name, done in st.session_state[rows_key]:
        c1, c2, c3 = st.columns([0.12, 0.73, 0.15])
        with c1:
            sub_done = st.checkbox("Done", value=done, key=f"{key}-sub-done-{uid}", label_visibility="collapsed")
        with c2:
            sub_label = st.text_input(
                "Subtask name",
                value=sub_name,
                placeholder="Subtask name",
                key=f"{key}-sub-name-{uid}",
                label_visibility="collapsed",
            )
        with c3:
            removed = st.button("✕", key=f"{key}-sub-del-{uid}")
        if not removed:
            rows.append((uid, sub_label, sub_done))
    if len(rows) != len(st.session_state[rows_key]):
        st.session_state[rows_key] = rows
        st.rerun()
    if st.button("+ Add Subtask", key=f"{key}-sub-add"):
        next_uid = max((r[0] for r in rows), default=-1) + 1
        st.session_state[rows_key] = rows + [(next_uid, "", False)]
        st.rerun()

    if st.button("💾 Save", key=f"{key}-save"):
        return board.TaskForm(
            id=task.id if task else None,
            name=name,
            status=status,
            release_id=release_id,
            feature_area_id=feature_area_id,
            notes=notes,
            subtasks=[(label, done) for _, label, done in rows],
        )
    return None


def import_uploaded(raw: bytes) -> Optional[board.AppState]:
    """Replace the document with an uploaded CSV and save it.

    A CSV that cannot be imported is reported and leaves the document as is.
    """
    try:
        new_state = board.import_csv(get_state(), decode_csv_bytes(raw))
    except CSVImportError as e:
        st.error(str(e))
        return None
    if commit(new_state):
        st.success(f"CSV Imported Successfully! {len(new_state.document.tasks)} tasks loaded.")
    return new_state
