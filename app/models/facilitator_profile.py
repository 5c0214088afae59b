# app/models/facilitator_profile.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class FacilitatorProfile(Base):
    """
    Facilitator profile for a given bundle (e.g. 'coordinator').

    Carries the facilitator's own attendee limit, display time zone and the
    availability entries ("hours") that define their terms.
    """

    __tablename__ = "facilitator_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    bundle = Column(String(64), nullable=False, default="coordinator")
    capacity = Column(Integer, nullable=True)
    timezone = Column(String(64), nullable=True)

    hours = relationship(
        "FacilitatorHours",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<FacilitatorProfile id={self.id} user_id={self.user_id} bundle={self.bundle}>"


class RecurrenceRule(Base):
    """
    Recurring availability rule. Its start/end span every generated instance.
    """

    __tablename__ = "recurrence_rules"

    id = Column(Integer, primary_key=True, index=True)
    start = Column(DateTime(timezone=True), nullable=True)
    end = Column(DateTime(timezone=True), nullable=True)
    timezone = Column(String(64), nullable=True)


class FacilitatorHours(Base):
    """
    One availability entry on a facilitator profile.
    """

    __tablename__ = "facilitator_hours"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(
        Integer,
        ForeignKey("facilitator_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start = Column(DateTime(timezone=True), nullable=True)
    end = Column(DateTime(timezone=True), nullable=True)
    timezone = Column(String(64), nullable=True)
    rrule_id = Column(
        Integer,
        ForeignKey("recurrence_rules.id", ondelete="SET NULL"),
        nullable=True,
    )

    rule = relationship("RecurrenceRule", lazy="selectin")
