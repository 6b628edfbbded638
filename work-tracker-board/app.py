import streamlit as st

from tracker import board
from tracker.board_ui import (
    commit,
    display_cells,
    form_key,
    get_state,
    reload,
    render_empty_state,
    set_state,
    task_form,
    task_form_key,
    task_info_html,
)
from tracker.errors import ValidationError
from tracker.theme import set_theme
from tracker.views import (
    SORT_FEATURE_AREA,
    SORT_RELEASE_DATE,
    VIEW_ALL,
    VIEW_BY_FEATURE_AREA,
    VIEW_BY_RELEASE,
    build_view,
    filter_options,
    task_display,
    tasks_to_df,
)

set_theme(page_title="Work Tracker", page_icon="🗂️")

VIEW_LABELS = {
    VIEW_ALL: "All Tasks",
    VIEW_BY_FEATURE_AREA: "By Feature Area",
    VIEW_BY_RELEASE: "By Release",
}
SORT_LABELS = {
    SORT_RELEASE_DATE: "Release Date",
    SORT_FEATURE_AREA: "Feature Area",
}

state = get_state()
document = state.document

st.title("🗂️ Work Tracker")
st.caption("Releases, feature areas and tasks. Import a CSV on the Import / Export page.")

# ----- Controls -----
c1, c2, c3, c4, c5 = st.columns([1.3, 1.1, 1.8, 0.9, 0.4])
with c1:
    view_mode = st.selectbox(
        "View",
        list(VIEW_LABELS),
        index=list(VIEW_LABELS).index(state.view_mode),
        format_func=VIEW_LABELS.get,
    )
with c2:
    sort_mode = st.selectbox(
        "Sort by",
        list(SORT_LABELS),
        index=list(SORT_LABELS).index(state.sort_mode),
        format_func=SORT_LABELS.get,
    )
with c3:
    options = filter_options(document, view_mode)
    filter_value = None
    if options:
        ids = [opt_id for opt_id, _ in options]
        names = dict(options)
        filter_value = st.selectbox(
            "Filter",
            ids,
            index=ids.index(state.filter_value) if state.filter_value in ids else 0,
            format_func=lambda i: names.get(i, i),
        )
with c4:
    table_mode = st.toggle("Table", value=False, help="Show the flat table instead of cards")
with c5:
    if st.button("↻", help="Reload from server"):
        reload()
        st.toast("Reloaded", icon="✅")
        st.rerun()

if (view_mode, sort_mode, filter_value) != (state.view_mode, state.sort_mode, state.filter_value):
    state = board.set_view(state, view_mode, sort_mode, filter_value)
    set_state(state)

with st.popover("➕ Add Task"):
    st.markdown("#### New Task")
    submitted = task_form(document, None, key=form_key("new-task"))
    if submitted is not None:
        try:
            if commit(board.upsert_task(state, submitted)):
                st.rerun()
        except ValidationError as e:
            st.error(str(e))

# ----- Board -----
if not document.tasks:
    render_empty_state()
    st.stop()

sections = build_view(document, state.view_mode, state.sort_mode, state.filter_value)

if table_mode:
    visible = [t for _, tasks in sections for t in tasks]
    st.dataframe(tasks_to_df(visible, document), use_container_width=True, hide_index=True)
    st.stop()

header = st.columns([4, 2, 1.4, 2, 0.5, 0.5])
for col, label in zip(header, ["Task", "Release", "Date", "Feature Area", "", ""]):
    col.markdown(f"**{label}**")

position = 0
for label, tasks in sections:
    if label:
        st.markdown(f'<div class="wt-group-header">{label}</div>', unsafe_allow_html=True)
    for task in tasks:
        position += 1
        release_cell, month_cell, area_cell = display_cells(task_display(task, document))
        cols = st.columns([4, 2, 1.4, 2, 0.5, 0.5])
        cols[0].markdown(task_info_html(task), unsafe_allow_html=True)
        cols[1].markdown(release_cell, unsafe_allow_html=True)
        cols[2].markdown(month_cell, unsafe_allow_html=True)
        cols[3].markdown(area_cell, unsafe_allow_html=True)
        with cols[4]:
            with st.popover("✏️"):
                st.markdown("#### Edit Task")
                edited = task_form(document, task, key=task_form_key(task, position))
                if edited is not None:
                    try:
                        if commit(board.upsert_task(state, edited)):
                            st.rerun()
                    except ValidationError as e:
                        st.error(str(e))
        with cols[5]:
            with st.popover("🗑"):
                st.markdown("**Are you sure?**")
                if st.button("Confirm Delete", key=form_key("del-task", position, task.id)):
                    if commit(board.delete_task(state, task.id)):
                        st.rerun()
