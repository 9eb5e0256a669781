# db.py
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import DATABASE_URL
from models import Base
from view import collation_key


def _fold(text: Optional[str]) -> Optional[str]:
    return None if text is None else text.casefold()


def _register_text_functions(engine: Engine) -> Engine:
    """
    SQLite's lower() only folds ASCII. Give every connection the same
    sort key and case fold the in-memory pipeline uses:

        book_collate(text)  -> view.collation_key(text)
        book_fold(text)     -> text.casefold()
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):
        dbapi_conn.create_function("book_collate", 1, collation_key, deterministic=True)
        dbapi_conn.create_function("book_fold", 1, _fold, deterministic=True)

    return engine


engine = _register_text_functions(create_engine(DATABASE_URL, future=True))
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False,  # records are read after the session closes
)


def make_session_factory(url: str) -> sessionmaker:
    """Engine + sessionmaker for another database (tests use sqlite://)."""
    other = _register_text_functions(create_engine(url, future=True))
    Base.metadata.create_all(bind=other)
    return sessionmaker(
        bind=other,
        autoflush=False,
        autocommit=False,
        future=True,
        expire_on_commit=False,
    )


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


@contextmanager
def get_session(factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
