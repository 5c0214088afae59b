# app/models/badge.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Badge(Base):
    """
    A tool or topic members can be checked out on.

    `capacity` limits attendees on sessions covering the badge; zero or
    NULL means the badge imposes no limit.
    """

    __tablename__ = "badges"

    id = Column(Integer, primary_key=True, index=True)
    label = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=True)

    documentation_form_id = Column(String(128), nullable=True)
    documentation_form_url = Column(String(512), nullable=True)

    prerequisite_links = relationship(
        "BadgePrerequisite",
        foreign_keys="BadgePrerequisite.badge_id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Badge id={self.id} label={self.label!r} capacity={self.capacity}>"


class BadgePrerequisite(Base):
    __tablename__ = "badge_prerequisites"

    badge_id = Column(
        Integer,
        ForeignKey("badges.id", ondelete="CASCADE"),
        primary_key=True,
    )
    prerequisite_id = Column(Integer, primary_key=True)


class BadgeRequest(Base):
    """
    A member's request for (or record of holding) a badge.
    """

    __tablename__ = "badge_requests"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, nullable=False, index=True)
    badge_id = Column(Integer, nullable=False, index=True)
    status = Column(String(32), nullable=True)
    published = Column(Boolean, nullable=False, default=True)


class DocumentationSubmission(Base):
    """
    A member's training documentation form submission.
    """

    __tablename__ = "documentation_submissions"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(String(128), nullable=False, index=True)
    member_id = Column(Integer, nullable=False, index=True)
    status = Column(String(32), nullable=True)
    in_draft = Column(Boolean, nullable=False, default=False)
    changed = Column(DateTime(timezone=True), nullable=False)
