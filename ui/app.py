"""Quick Notes — Streamlit watch-style screen.

Run with:
    streamlit run ui/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so `quicknotes.*` imports resolve
# regardless of the working directory Streamlit uses.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

st.set_page_config(page_title="Quick Notes", page_icon="📝", layout="centered")

from quicknotes.backends import create_backend  # noqa: E402
from quicknotes.config import settings  # noqa: E402
from quicknotes.dictation import handle_dictation_result  # noqa: E402
from quicknotes.display import truncate_text  # noqa: E402
from quicknotes.manager import NotesManager  # noqa: E402


def _manager() -> NotesManager:
    """One manager per browser session, loaded on first render."""
    if "manager" not in st.session_state:
        manager = NotesManager(
            create_backend(settings), storage_key=settings.storage_key
        )
        if not manager.last_load.ok:
            st.toast(f"Could not load saved notes: {manager.last_load.error}")
        st.session_state.manager = manager
    return st.session_state.manager


def _render_detail(manager: NotesManager, position: int) -> None:
    note = manager.get(position)
    st.subheader("Note")
    st.write(note.text)
    st.caption(note.timestamp.strftime("%Y-%m-%d %H:%M"))
    if st.button("← Back"):
        st.session_state.pop("selected", None)
        st.rerun()


def _render_list(manager: NotesManager) -> None:
    st.title("Quick Notes")

    for position, note in enumerate(manager.notes):
        label = truncate_text(note.text, settings.preview_limit) or " "
        if st.button(label, key=f"note-{note.id}", use_container_width=True):
            st.session_state.selected = position
            st.rerun()

    # Typed text stands in for the watch's dictation sheet.
    spoken = st.chat_input("Add Note")
    if spoken is not None:
        result = handle_dictation_result(manager, [spoken])
        if result is not None and not result.ok:
            st.warning(f"Note kept but not saved: {result.error}")
        st.rerun()

    if manager.notes:
        with st.expander("Delete notes"):
            choices = st.multiselect(
                "Select notes",
                options=list(range(len(manager))),
                format_func=lambda i: truncate_text(
                    manager.notes[i].text, settings.preview_limit
                ),
            )
            if st.button("Delete", type="primary", disabled=not choices):
                result = manager.delete_note(set(choices))
                if not result.ok:
                    st.warning(f"Deleted but not saved: {result.error}")
                st.rerun()


manager = _manager()
selected = st.session_state.get("selected")
if selected is not None and selected < len(manager):
    _render_detail(manager, selected)
else:
    _render_list(manager)
