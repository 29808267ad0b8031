from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from santa.db import get_session, init_archive, repo
from santa.db.models import Base
from santa.services.allocator import Allocator
from santa.services.archive import reveal

NAMES = ["sam", "tom", "jim", "grace", "bill"]
PASSWORDS = ["p1", "p2", "p3", "p4", "p5"]


def create_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)()


def create_envelope(name: str):
    allocator = Allocator(NAMES, PASSWORDS, name=name)
    return allocator.envelope(allocator.allocate())


def test_empty_archive():
    session = create_session()
    assert repo.get_latest_envelope(session) is None
    assert repo.list_envelopes(session) == []


def test_save_and_load_latest():
    session = create_session()
    first = create_envelope("Friendmas 2023")
    second = create_envelope("Friendmas 2024")
    repo.save_envelope(session, first)
    record = repo.save_envelope(session, second)
    session.commit()

    assert record.id is not None
    latest = repo.get_latest_envelope(session)
    assert latest.allocation_name == "Friendmas 2024"
    assert latest.allocated_passwords == second.allocated_passwords
    assert latest.allocation == second.allocation
    assert latest.created.replace(tzinfo=None) == second.created.replace(tzinfo=None)
    assert reveal(latest).gift_sheet() == second.allocated_passwords


def test_filter_by_allocation_name():
    session = create_session()
    older = create_envelope("Friendmas 2023")
    repo.save_envelope(session, older)
    repo.save_envelope(session, create_envelope("Friendmas 2024"))
    session.commit()

    assert repo.get_latest_envelope(session, "Friendmas 2023").allocation == older.allocation
    assert repo.get_latest_envelope(session, "Easter") is None
    assert [item.allocation_name for item in repo.list_envelopes(session)] == [
        "Friendmas 2023",
        "Friendmas 2024",
    ]
    assert len(repo.list_envelopes(session, "Friendmas 2024")) == 1


def test_init_archive_creates_table(tmp_path):
    init_archive(f"sqlite+pysqlite:///{tmp_path / 'archive.db'}")
    envelope = create_envelope("Friendmas 2024")
    with get_session() as session:
        repo.save_envelope(session, envelope)
    with get_session() as session:
        assert repo.get_latest_envelope(session).allocation == envelope.allocation
