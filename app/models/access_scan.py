# app/models/access_scan.py
from sqlalchemy import Column, DateTime, Integer, String

from app.db.base import Base


class AccessScan(Base):
    """
    Door/badge-reader access event used as facilitator arrival evidence.
    """

    __tablename__ = "access_scans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    created = Column(DateTime(timezone=True), nullable=False, index=True)
    reader = Column(String(128), nullable=True)

    def __repr__(self) -> str:
        return f"<AccessScan id={self.id} user_id={self.user_id} created={self.created}>"
