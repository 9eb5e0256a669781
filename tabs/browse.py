"""
Browse tab for the Streamlit app.

Notes:
- Every action goes through BookListController and is followed by st.rerun(),
  so the list is always re-derived after a change.
- Cards use the record identity as widget key; id-less records (json backend)
  are keyed by title + author plus position, since duplicates are allowed.
"""

import hashlib

import streamlit as st

from books import FILTERS, SORT_MODES, STATUSES, BookRecord, Status, identity_of
from controller import BookListController
from pagination import PageLink, build_window, has_next, has_prev
from validators import ValidationError

SORT_LABELS = {
    "title-asc": "Title (A-Z)",
    "title-desc": "Title (Z-A)",
    "author-asc": "Author (A-Z)",
    "author-desc": "Author (Z-A)",
    "rating-desc": "Rating (high to low)",
    "rating-asc": "Rating (low to high)",
}


def _key(record: BookRecord) -> str:
    ident = identity_of(record)
    return hashlib.sha1(repr(ident).encode("utf-8")).hexdigest()[:12]


def _stars(rating: int) -> str:
    return "★" * rating + "☆" * (5 - rating)


def render_browse_tab(controller: BookListController):
    """Render the library list: filter, search, sort, paginate, edit."""
    st.subheader("My Books")

    # ------------------------------------------------------------------
    # Filter buttons
    # ------------------------------------------------------------------
    filter_cols = st.columns(len(FILTERS))
    for col, status_filter in zip(filter_cols, FILTERS):
        active = controller.query.status_filter == status_filter
        if col.button(
            status_filter,
            key=f"filter_{status_filter}",
            type="primary" if active else "secondary",
            use_container_width=True,
        ):
            controller.set_filter(status_filter)
            st.rerun()

    # ------------------------------------------------------------------
    # Search & sort
    # ------------------------------------------------------------------
    col1, col2, col3 = st.columns([3, 1, 2])
    with col1:
        search = st.text_input(
            "Search title or author",
            value=controller.query.search,
            placeholder="e.g., Hobbit",
        )
    with col2:
        st.write("")
        if st.button("Clear", disabled=not controller.query.search):
            controller.set_search("")
            st.rerun()
    with col3:
        sort = st.selectbox(
            "Sort by",
            SORT_MODES,
            index=SORT_MODES.index(controller.query.sort) if controller.query.sort in SORT_MODES else 0,
            format_func=lambda mode: SORT_LABELS.get(mode, mode),
        )

    if search != controller.query.search:
        controller.set_search(search)
        st.rerun()
    if sort != controller.query.sort:
        controller.set_sort(sort)
        st.rerun()

    if controller.error:
        st.error(controller.error)

    result = controller.result
    st.caption(f"Books found: {result.total}")

    if not result.items:
        st.info("No books here yet." if not controller.query.search else "Nothing matches your search.")

    for i, record in enumerate(result.items):
        _render_card(controller, record, f"{_key(record)}_{i}")

    _render_pagination(controller)


def _render_card(controller: BookListController, record: BookRecord, key: str) -> None:
    with st.container(border=True):
        if controller.is_editing(record):
            _render_edit_form(controller, record, key)
            return

        st.markdown(f"### {record.title}")
        st.caption(f"{record.author} • {record.status} • {_stars(record.rating)}")

        # Want to Read books cannot be rated
        want_to_read = record.status == Status.WANT_TO_READ.value
        rating = st.select_slider(
            "Rating",
            options=list(range(0, 6)),
            value=record.rating,
            key=f"rate_{key}",
            disabled=want_to_read,
        )
        if rating != record.rating and not want_to_read:
            controller.rate(record, rating)
            st.rerun()

        c1, c2, c3 = st.columns(3)
        if c1.button("Toggle status", key=f"toggle_{key}", use_container_width=True):
            controller.toggle_status(record)
            st.rerun()
        if c2.button("Edit", key=f"edit_{key}", use_container_width=True):
            controller.start_edit(record)
            st.rerun()
        if c3.button("Delete", key=f"del_{key}", use_container_width=True):
            if controller.remove(record):
                st.toast(f"Deleted: {record.title}")
            st.rerun()


def _render_edit_form(controller: BookListController, record: BookRecord, key: str) -> None:
    draft = controller.draft
    with st.form(f"edit_form_{key}"):
        title = st.text_input("Title", value=draft.get("title", record.title))
        author = st.text_input("Author", value=draft.get("author", record.author))
        current = draft.get("status", record.status)
        status = st.selectbox(
            "Status", STATUSES, index=STATUSES.index(current) if current in STATUSES else 0
        )
        c1, c2 = st.columns(2)
        save = c1.form_submit_button("Save", use_container_width=True)
        cancel = c2.form_submit_button("Cancel", use_container_width=True)

    if save:
        try:
            controller.save_edit(record, {"title": title, "author": author, "status": status})
        except ValidationError as e:
            st.error(f"Could not save: {e}")
            return
        st.rerun()
    if cancel:
        controller.cancel_edit()
        st.rerun()


def _render_pagination(controller: BookListController) -> None:
    # ------------------------------------------------------------------
    # Pagination footer: Prev, window of page links, Next
    # ------------------------------------------------------------------
    current = controller.result.safe_page
    total_pages = controller.result.total_pages
    window = build_window(current, total_pages)

    cols = st.columns(len(window) + 2)
    if cols[0].button("Prev", disabled=not has_prev(current), key="page_prev"):
        controller.set_page(current - 1)
        st.rerun()

    for col, item in zip(cols[1:-1], window):
        if isinstance(item, PageLink):
            if col.button(
                str(item.number),
                key=f"page_{item.number}",
                type="primary" if item.number == current else "secondary",
            ):
                controller.set_page(item.number)
                st.rerun()
        else:
            col.markdown(str(item))

    if cols[-1].button("Next", disabled=not has_next(current, total_pages), key="page_next"):
        controller.set_page(current + 1)
        st.rerun()

    st.write(f"Page {current} / {total_pages}")
