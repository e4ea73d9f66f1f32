from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String

from cycleplan.db.database import Base


class ProgramRecord(Base):
    """One program stored as its serialized document."""

    __tablename__ = "programs"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
