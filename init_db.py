from sqlalchemy import func, select

from db import get_session, init_db
from models import Book
from store import DEFAULT_BOOKS


def main():
    init_db()
    # Optional: seed the two starter books into an empty library
    with get_session() as s:
        if not s.scalar(select(func.count()).select_from(Book)):
            for record in DEFAULT_BOOKS:
                s.add(Book(title=record.title, author=record.author,
                           status=record.status, rating=record.rating))


if __name__ == "__main__":
    main()
