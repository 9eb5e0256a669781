from __future__ import annotations

import streamlit as st

from books import STATUSES, Status
from controller import BookListController
from validators import ValidationError


def render_add_tab(controller: BookListController) -> None:
    st.subheader("Add a new book")

    with st.form("add_book_manual", clear_on_submit=True):
        title = st.text_input("Title", placeholder="e.g., The Hobbit")
        author = st.text_input("Author", placeholder="e.g., J.R.R. Tolkien")
        status = st.selectbox("Status", STATUSES, index=STATUSES.index(Status.READING.value))

        submitted = st.form_submit_button("Add book")
        if submitted:
            try:
                created = controller.add({"title": title, "author": author, "status": status})
            except ValidationError as e:
                st.error(f"Could not add book: {e}")
                return
            if created is None:
                st.error(controller.error or "Could not add book.")
                return
            # the new book shows up on page 1 of the current view
            st.toast(f"Added: {created.title}")
            st.rerun()
