import streamlit as st

from tracker import board
from tracker.board_ui import commit, get_state, import_uploaded
from tracker.csv_import import document_to_csv
from tracker.theme import set_theme

set_theme(page_title="Import / Export", page_icon="📦")

st.title("📦 Import / Export")

im_col, ex_col = st.columns(2)
with im_col:
    st.markdown("### Import CSV")
    st.markdown(
        "Importing **replaces** all releases, feature areas and tasks. Recognized columns: "
        "`Name`, `Task ID`, `Release Version`, `Feature Area`, `Section/Column`, `Due Date`, "
        "`Parent task`, `Assignee`, `Notes`, `Comment`, `Comments`."
    )
    up = st.file_uploader("Task CSV", type=["csv"], key="import-csv-uploader")
    if up is not None and st.button("Import", key="import-csv-btn"):
        import_uploaded(up.getvalue())

# Read after the import block so downloads serve what was just imported.
document = get_state().document

with ex_col:
    st.markdown("### Export")
    st.download_button(
        "Download JSON",
        data=board.export_json(document).encode("utf-8"),
        file_name=board.EXPORT_FILENAME,
        mime="application/json",
        key="dl-json",
    )
    st.download_button(
        "Download CSV",
        data=document_to_csv(document).encode("utf-8"),
        file_name="work_tracker_tasks.csv",
        mime="text/csv",
        key="dl-csv",
    )

st.markdown("---")
st.markdown("### Danger Zone")
with st.popover("🧹 Clear all data"):
    st.markdown("**Are you sure you want to clear all data? This cannot be undone.**")
    if st.button("Confirm Clear", key="clear-all"):
        if commit(board.clear(get_state())):
            st.rerun()
