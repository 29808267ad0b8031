from santa.db.models import AllocationArchive, Base
from santa.db.session import ArchiveSession, get_session, init_archive

__all__ = [
    "AllocationArchive",
    "ArchiveSession",
    "Base",
    "get_session",
    "init_archive",
]
