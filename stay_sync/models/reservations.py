# models/reservations.py

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from stay_sync.config import SCHEMA
from stay_sync.models.base import Base

RESERVATION_STATUSES = ("pending", "upcoming", "current", "completed", "cancelled")
RESERVATION_SOURCES = ("airbnb", "direct", "other")

# Only ever set explicitly; never re-derived from the dates
MANUAL_STATUSES = ("pending", "cancelled")


class Reservation(Base):
    """
    ORM model for stays at the property.

    Dates are property-local calendar dates forming the half-open interval
    [check_in_date, check_out_date). The guest lives in an external directory;
    only its id and the name/phone captured at booking time are stored here.
    Status is derived from the dates by the sweep, except for ``pending`` and
    ``cancelled`` which are only ever set explicitly.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_check_in_date", "check_in_date"),
        Index("ix_reservations_check_out_date", "check_out_date"),
        Index("ix_reservations_status", "status"),
        Index("ix_reservations_guest_ref_check_in", "guest_ref", "check_in_date"),
        {"schema": SCHEMA},
    )

    id = Column(String(36), primary_key=True)  # UUID4 string
    guest_ref = Column(String, nullable=False)
    guest_name = Column(String, nullable=True)
    guest_phone = Column(String, nullable=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    check_in_time = Column(String(5), nullable=False, default="15:00")
    check_out_time = Column(String(5), nullable=False, default="11:00")
    status = Column(String(16), nullable=False, default="upcoming")
    source = Column(String(16), nullable=False, default="direct")
    number_of_guests = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    total_amount = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    reservation_code = Column(String, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Set explicitly by store writes; status sweeps leave it alone
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
