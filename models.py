from typing import Optional
from datetime import date
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        # Database-level protection against double booking
        UniqueConstraint("resource_type", "booking_date", "slot_time", name="unique_booking_slot"),
        # Never hand out the id of a cancelled booking again
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    resource_type: str = Field(index=True)
    owner_name: str
    booking_date: date = Field(index=True)
    slot_time: str  # "06:00", "07:00", ...
