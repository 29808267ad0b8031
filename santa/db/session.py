from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from santa.db.models import Base

ArchiveSession = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def init_archive(database_url: str):
    """Bind archive sessions to ``database_url``, creating the archive table if missing."""
    engine = create_engine(database_url, pool_pre_ping=True, future=True)
    Base.metadata.create_all(engine, tables=[Base.metadata.tables["allocation_archives"]])
    ArchiveSession.configure(bind=engine)
    return engine


@contextmanager
def get_session():
    if ArchiveSession.kw.get("bind") is None:
        raise RuntimeError("Allocation archive not initialised. Call init_archive() first.")
    session = ArchiveSession()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
