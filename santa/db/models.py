from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class AllocationArchive(Base):
    __tablename__ = "allocation_archives"

    id = Column(Integer, primary_key=True)
    allocation_name = Column(String, nullable=False, default="", index=True)
    created = Column(DateTime(timezone=True), nullable=False)
    allocated_passwords = Column(JSON, nullable=False)
    allocation = Column(Text, nullable=False)
    stored_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            "<AllocationArchive(id={0}, allocation_name={1}, created={2})>"
        ).format(self.id, self.allocation_name, self.created)
