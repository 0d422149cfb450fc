from sqlalchemy import Column, String, DateTime, JSON

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class Report(Base):
    """A generated analytics report and the figures it was computed from"""
    __tablename__ = "reports"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False)
    type = Column(String(50), nullable=False, index=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    community_id = Column(GUID, nullable=True)
    generated_by = Column(GUID, nullable=False, index=True)
    summary = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Report {self.type} {self.id}>"
