import html

import streamlit as st

from tracker import board
from tracker.board_ui import commit, form_key, get_state, pill
from tracker.colors import entity_color, get_color
from tracker.config import DELETE_CASCADE, get_config
from tracker.errors import ValidationError
from tracker.theme import set_theme
from tracker.views import sorted_releases

set_theme(page_title="Releases", page_icon="🚀")

state = get_state()
policy = get_config().delete_policy

st.title("🚀 Releases")
if policy == DELETE_CASCADE:
    st.caption("Deleting a release also deletes every task assigned to it.")
else:
    st.caption("Deleting a release leaves its tasks in place as Unassigned.")


def release_form(release, key: str):
    name = st.text_input("Name", value=release.name if release else "", key=f"{key}-name")
    date_raw = st.text_input("Date (YYYY-MM-DD)", value=release.date if release else "", key=f"{key}-date")
    launch = st.text_input("Launch Month (YYYY-MM)", value=release.launch_month if release else "", key=f"{key}-launch")
    color = st.color_picker(
        "Color",
        value=entity_color(release) if release else get_color(""),
        key=f"{key}-color",
    )
    if st.button("💾 Save", key=f"{key}-save"):
        return board.ReleaseForm(
            id=release.id if release else None,
            name=name,
            date=date_raw.strip(),
            launch_month=launch.strip(),
            color=color,
        )
    return None


with st.popover("➕ Add Release"):
    form = release_form(None, form_key("new-release"))
    if form is not None:
        try:
            if commit(board.upsert_release(state, form)):
                st.rerun()
        except ValidationError as e:
            st.error(str(e))

releases = sorted_releases(state.document)
if not releases:
    st.info("No releases yet.")
    st.stop()

header = st.columns([3, 1.5, 1.5, 0.5, 0.5])
for col, label in zip(header, ["Release Name", "Date", "Launch Month", "", ""]):
    col.markdown(f"**{label}**")

for pos, r in enumerate(releases):
    cols = st.columns([3, 1.5, 1.5, 0.5, 0.5])
    cols[0].markdown(pill(r.name, entity_color(r)), unsafe_allow_html=True)
    cols[1].markdown(html.escape(r.date or "-"))
    cols[2].markdown(html.escape(r.launch_month or "-"))
    with cols[3]:
        with st.popover("✏️"):
            form = release_form(r, form_key("edit-release", pos, r.id))
            if form is not None:
                try:
                    if commit(board.upsert_release(state, form)):
                        st.rerun()
                except ValidationError as e:
                    st.error(str(e))
    with cols[4]:
        with st.popover("🗑"):
            st.markdown("**Are you sure?**")
            if st.button("Confirm Delete", key=form_key("del-release", pos, r.id)):
                if commit(board.delete_release(state, r.id, policy=policy)):
                    st.rerun()
