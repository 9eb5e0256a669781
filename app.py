from __future__ import annotations

import streamlit as st

import config
from controller import BookListController
from db import init_db
from logger import setup_logger
from prefs import Prefs, THEMES, load_prefs, save_prefs
from store import make_store
from tabs.add import render_add_tab
from tabs.browse import render_browse_tab
from view import ViewQuery

# ---------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------
st.set_page_config(page_title="My Book Tracker", layout="wide")
setup_logger("", config.LOG_LEVEL)

# ---------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------
col1, col2, col3 = st.columns([1, 3, 1])
with col2:
    st.title("My Book Tracker")
    st.markdown("Track what you are reading, what you have read and what is next.")

# ---------------------------------------------------------------------
# Ensure tables exist
# ---------------------------------------------------------------------
if config.BACKEND == "sql":
    try:
        init_db()
    except Exception as exc:
        st.error("Failed to initialize database tables.")
        st.exception(exc)
        st.stop()


@st.cache_resource
def _get_store():
    return make_store(config.BACKEND, api_url=config.API_URL, books_file=config.BOOKS_FILE)


try:
    store = _get_store()
except ValueError as exc:
    st.error(f"Invalid BOOK_TRACKER_BACKEND: {exc}")
    st.stop()

# ---------------------------------------------------------------------
# Per-session view state, seeded from remembered preferences
# ---------------------------------------------------------------------
if "controller" not in st.session_state:
    prefs = load_prefs(config.PREFS_FILE)
    st.session_state["controller"] = BookListController(
        store,
        query=ViewQuery(
            status_filter=prefs.filter,
            search=prefs.search,
            sort=prefs.sort,
            page=prefs.page,
            page_size=config.PAGE_SIZE,
        ),
    )
    st.session_state["theme"] = prefs.theme

controller: BookListController = st.session_state["controller"]

with st.sidebar:
    st.header("Settings")
    st.caption(f"Backend: {config.BACKEND}")
    theme = st.radio(
        "Theme",
        THEMES,
        index=THEMES.index(st.session_state["theme"]),
        horizontal=True,
    )
    st.session_state["theme"] = theme

if theme == "light":
    st.markdown(
        "<style>.stApp {background-color: #fafafa; color: #1f1f1f;}</style>",
        unsafe_allow_html=True,
    )

# Fresh query on every rerun; nothing is cached across mutations
controller.reload()

# ---------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------
browse_tab, add_tab = st.tabs(["Browse", "Add Book"])

with browse_tab:
    render_browse_tab(controller)

with add_tab:
    render_add_tab(controller)

try:
    save_prefs(
        config.PREFS_FILE,
        Prefs(
            filter=controller.query.status_filter,
            sort=controller.query.sort,
            search=controller.query.search,
            page=controller.query.page,
            theme=theme,
        ),
    )
except OSError as exc:
    st.caption(f"Could not save preferences: {exc}")
