import streamlit as st

from tracker import board
from tracker.board_ui import commit, form_key, get_state, pill
from tracker.colors import entity_color, get_color
from tracker.config import DELETE_CASCADE, get_config
from tracker.errors import ValidationError
from tracker.theme import set_theme
from tracker.views import sorted_feature_areas

set_theme(page_title="Feature Areas", page_icon="🧩")

state = get_state()
policy = get_config().delete_policy

st.title("🧩 Feature Areas")
if policy == DELETE_CASCADE:
    st.caption("Deleting a feature area also deletes every task in it.")
else:
    st.caption("Deleting a feature area leaves its tasks in place as Unassigned.")


def feature_area_form(area, key: str):
    name = st.text_input("Name", value=area.name if area else "", key=f"{key}-name")
    color = st.color_picker("Color", value=entity_color(area) if area else get_color(""), key=f"{key}-color")
    if st.button("💾 Save", key=f"{key}-save"):
        return board.FeatureAreaForm(id=area.id if area else None, name=name, color=color)
    return None


with st.popover("➕ Add Feature Area"):
    form = feature_area_form(None, form_key("new-feature"))
    if form is not None:
        try:
            if commit(board.upsert_feature_area(state, form)):
                st.rerun()
        except ValidationError as e:
            st.error(str(e))

areas = sorted_feature_areas(state.document)
if not areas:
    st.info("No feature areas yet.")
    st.stop()

st.columns([6, 0.5, 0.5])[0].markdown("**Feature Area Name**")
for pos, f in enumerate(areas):
    cols = st.columns([6, 0.5, 0.5])
    cols[0].markdown(pill(f.name, entity_color(f)), unsafe_allow_html=True)
    with cols[1]:
        with st.popover("✏️"):
            form = feature_area_form(f, form_key("edit-feature", pos, f.id))
            if form is not None:
                try:
                    if commit(board.upsert_feature_area(state, form)):
                        st.rerun()
                except ValidationError as e:
                    st.error(str(e))
    with cols[2]:
        with st.popover("🗑"):
            st.markdown("**Are you sure?**")
            if st.button("Confirm Delete", key=form_key("del-feature", pos, f.id)):
                if commit(board.delete_feature_area(state, f.id, policy=policy)):
                    st.rerun()
