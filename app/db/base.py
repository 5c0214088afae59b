# app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the Facilitator Activity service.
    """
    pass


# Import ORM models so that Base.metadata is aware of them
# This import should stay at the bottom to avoid circular dependencies.
from app.models.appointment import Appointment  # noqa: E402,F401
from app.models.badge import Badge  # noqa: E402,F401
from app.models.facilitator_profile import FacilitatorProfile  # noqa: E402,F401
from app.models.access_scan import AccessScan  # noqa: E402,F401
