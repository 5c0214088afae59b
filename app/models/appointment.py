# app/models/appointment.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Appointment(Base):
    """
    A scheduled session between a facilitator (host) and one or more members.

    Rows are owned by the scheduling application; this service only reads
    them, apart from the arrival columns written by the backfill.
    """

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, default="")

    host_id = Column(Integer, nullable=True, index=True)
    published = Column(Boolean, nullable=False, default=True)

    scheduled_start = Column(DateTime(timezone=True), nullable=True, index=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=True)
    timezone = Column(String(64), nullable=True)

    status = Column(String(32), nullable=True, index=True)
    purpose = Column(String(64), nullable=True, index=True)
    result = Column(String(64), nullable=True)
    feedback = Column(Text, nullable=True)

    arrival_status = Column(String(32), nullable=True)
    arrival_time = Column(DateTime(timezone=True), nullable=True)

    badge_links = relationship(
        "AppointmentBadge",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    attendee_links = relationship(
        "AppointmentAttendee",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment id={self.id} host_id={self.host_id} "
            f"start={self.scheduled_start} status={self.status}>"
        )


class AppointmentBadge(Base):
    """
    Badge covered by an appointment.
    """

    __tablename__ = "appointment_badges"

    appointment_id = Column(
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    badge_id = Column(Integer, primary_key=True)
    delta = Column(Integer, primary_key=True, default=0)


class AppointmentAttendee(Base):
    """
    Member listed on an appointment.
    """

    __tablename__ = "appointment_attendees"

    appointment_id = Column(
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(Integer, primary_key=True)
