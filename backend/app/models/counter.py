from sqlalchemy import Column, Date, Integer

from app.core.database import Base
from app.core.types import GUID


class IssueSequence(Base):
    """Last issue sequence number handed out per calendar day"""
    __tablename__ = "issue_sequences"

    day = Column(Date, primary_key=True)
    last_value = Column(Integer, default=0, nullable=False)


class RouteDailyLoad(Base):
    """Pickups reserved on a route for one day"""
    __tablename__ = "route_daily_loads"

    route_id = Column(GUID, primary_key=True)
    day = Column(Date, primary_key=True)
    reserved = Column(Integer, default=0, nullable=False)
