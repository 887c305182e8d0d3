from datetime import date, datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ReservationStatus = Literal["pending", "upcoming", "current", "completed", "cancelled"]
ReservationSource = Literal["airbnb", "direct", "other"]


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReservationCreatePayload(CamelModel):
    """
    Schema for creating a stay. Dates are property-local; checkout is exclusive.
    """

    guest_ref: str = Field(
        ...,
        min_length=1,
        description="Guest id in the external guest directory",
        validation_alias=AliasChoices("guestRef", "guest_ref", "userId"),
    )
    guest_name: Optional[str] = Field(None, description="Display name captured at booking")
    guest_phone: Optional[str] = Field(None, description="Phone captured at booking")
    check_in_date: date = Field(..., description="First night (YYYY-MM-DD)")
    check_out_date: date = Field(..., description="Checkout day (YYYY-MM-DD), exclusive")
    check_in_time: Optional[str] = Field(None, description="Advisory check-in time, default 15:00")
    check_out_time: Optional[str] = Field(None, description="Advisory checkout time, default 11:00")
    number_of_guests: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    source: Optional[ReservationSource] = Field(None, description="Provenance, default direct")
    total_amount: Optional[float] = Field(None, ge=0)
    is_paid: Optional[bool] = None
    reservation_code: Optional[str] = Field(
        None,
        description="Channel confirmation code (e.g. HM...)",
        validation_alias=AliasChoices("reservationCode", "reservation_code", "confirmationCode"),
    )
    status: Optional[ReservationStatus] = Field(
        None, description="Explicit status (e.g. pending); derived from the dates when omitted"
    )


class ReservationUpdatePayload(CamelModel):
    """
    Schema for a partial update. All fields are optional; only the ones sent are applied.
    """

    guest_ref: Optional[str] = Field(
        None,
        min_length=1,
        validation_alias=AliasChoices("guestRef", "guest_ref", "userId"),
    )
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    number_of_guests: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    source: Optional[ReservationSource] = None
    total_amount: Optional[float] = Field(None, ge=0)
    is_paid: Optional[bool] = None
    reservation_code: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("reservationCode", "reservation_code", "confirmationCode"),
    )
    status: Optional[ReservationStatus] = Field(None, description="Manual status assignment")


class ReservationOut(CamelModel):
    id: str
    guest_ref: str
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    check_in_date: date
    check_out_date: date
    check_in_time: str
    check_out_time: str
    status: ReservationStatus
    source: ReservationSource
    number_of_guests: Optional[int] = None
    notes: Optional[str] = None
    total_amount: Optional[float] = None
    is_paid: bool
    reservation_code: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CurrentAndNextOut(CamelModel):
    current: Optional[ReservationOut] = None
    next: Optional[ReservationOut] = None


class ReservationDeletedOut(CamelModel):
    message: str
    reservation: Optional[ReservationOut] = None
