from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select

from santa.db.models import AllocationArchive
from santa.services.allocation import ArchiveEnvelope


def save_envelope(session, envelope: ArchiveEnvelope) -> AllocationArchive:
    record = AllocationArchive(
        allocation_name=envelope.allocation_name,
        created=envelope.created,
        allocated_passwords=dict(envelope.allocated_passwords),
        allocation=envelope.allocation,
    )
    session.add(record)
    session.flush()
    return record


def get_latest_envelope(session, allocation_name: Optional[str] = None) -> Optional[ArchiveEnvelope]:
    query = select(AllocationArchive)
    if allocation_name is not None:
        query = query.where(AllocationArchive.allocation_name == allocation_name)
    record = session.scalar(query.order_by(AllocationArchive.id.desc()).limit(1))
    if not record:
        return None
    return to_envelope(record)


def list_envelopes(session, allocation_name: Optional[str] = None) -> List[ArchiveEnvelope]:
    query = select(AllocationArchive)
    if allocation_name is not None:
        query = query.where(AllocationArchive.allocation_name == allocation_name)
    records = session.scalars(query.order_by(AllocationArchive.id)).all()
    return [to_envelope(record) for record in records]


def to_envelope(record: AllocationArchive) -> ArchiveEnvelope:
    return ArchiveEnvelope(
        allocation_name=record.allocation_name,
        created=record.created,
        allocated_passwords=dict(record.allocated_passwords),
        allocation=record.allocation,
    )
