"""
Booking registry.

BookingStore is the only writer of the ``bookings`` table. Every operation
runs under a single asyncio lock, so the "is this slot taken" check and the
following insert or update happen as one step with respect to any other
request. The unique constraint on the table backs the same rule in the
database.
"""

import asyncio
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import select

from database import session_factory
from exceptions import (
    BookingNotFoundError,
    InvalidInputError,
    SlotOutOfRangeError,
    SlotTakenError,
)
from models import Booking
from slots import SlotCalendar

logger = logging.getLogger(__name__)


class BookingStore:
    def __init__(self, engine: AsyncEngine, calendar: Optional[SlotCalendar] = None):
        self._engine = engine
        self._calendar = calendar or SlotCalendar()
        self._sessions = session_factory(engine)
        self._lock = asyncio.Lock()

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def calendar(self) -> SlotCalendar:
        return self._calendar

    async def available_slots(self, resource_type: str, booking_date: date) -> List[str]:
        """Candidate slots for the type and date minus the ones already booked."""
        candidates = self._calendar.candidate_slots(resource_type, booking_date)

        async with self._lock:
            async with self._sessions() as session:
                statement = select(Booking.slot_time).where(
                    Booking.resource_type == resource_type,
                    Booking.booking_date == booking_date,
                )
                result = await session.execute(statement)
                booked = set(result.scalars().all())

        return [t for t in candidates if t not in booked]

    async def create(
        self,
        resource_type: str,
        owner_name: str,
        booking_date: date,
        slot_time: str,
    ) -> Booking:
        self._validate(resource_type, owner_name, booking_date, slot_time)

        async with self._lock:
            async with self._sessions() as session:
                occupant = await self._occupant(session, resource_type, booking_date, slot_time)
                if occupant is not None:
                    logger.warning(
                        "Rejected booking of %s %s %s: held by #%s",
                        resource_type, booking_date, slot_time, occupant.id,
                    )
                    raise SlotTakenError(resource_type, booking_date, slot_time)

                booking = Booking(
                    resource_type=resource_type,
                    owner_name=owner_name,
                    booking_date=booking_date,
                    slot_time=slot_time,
                )
                session.add(booking)
                await self._commit(session, resource_type, booking_date, slot_time)
                await session.refresh(booking)

        logger.info(
            "Created booking #%s: %s %s %s for %s",
            booking.id, resource_type, booking_date, slot_time, owner_name,
        )
        return booking

    async def update(
        self,
        booking_id: int,
        resource_type: str,
        owner_name: str,
        booking_date: date,
        slot_time: str,
    ) -> Booking:
        """Reschedule a booking. Moving it onto its own current slot is allowed."""
        async with self._lock:
            async with self._sessions() as session:
                booking = await session.get(Booking, booking_id)
                if booking is None:
                    raise BookingNotFoundError(booking_id)

                self._validate(resource_type, owner_name, booking_date, slot_time)

                occupant = await self._occupant(
                    session, resource_type, booking_date, slot_time, exclude_id=booking_id
                )
                if occupant is not None:
                    logger.warning(
                        "Rejected reschedule of #%s to %s %s %s: held by #%s",
                        booking_id, resource_type, booking_date, slot_time, occupant.id,
                    )
                    raise SlotTakenError(resource_type, booking_date, slot_time)

                booking.resource_type = resource_type
                booking.owner_name = owner_name
                booking.booking_date = booking_date
                booking.slot_time = slot_time
                await self._commit(session, resource_type, booking_date, slot_time)
                await session.refresh(booking)

        logger.info(
            "Updated booking #%s: %s %s %s for %s",
            booking_id, resource_type, booking_date, slot_time, owner_name,
        )
        return booking

    async def cancel(self, booking_id: int) -> Booking:
        async with self._lock:
            async with self._sessions() as session:
                booking = await session.get(Booking, booking_id)
                if booking is None:
                    raise BookingNotFoundError(booking_id)

                await session.delete(booking)
                await session.commit()

        logger.info("Cancelled booking #%s", booking_id)
        return booking

    async def get(self, booking_id: int) -> Booking:
        async with self._lock:
            async with self._sessions() as session:
                booking = await session.get(Booking, booking_id)

        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def list_all(self) -> List[Booking]:
        async with self._lock:
            async with self._sessions() as session:
                result = await session.execute(select(Booking).order_by(Booking.id))
                return list(result.scalars().all())

    def _validate(self, resource_type, owner_name, booking_date, slot_time):
        if not resource_type or not owner_name or not owner_name.strip() or not slot_time:
            raise InvalidInputError()
        if not isinstance(booking_date, date):
            raise InvalidInputError("Invalid date", details={"date": str(booking_date)})

        # Raises UnknownResourceTypeError before the range check
        candidates = self._calendar.candidate_slots(resource_type, booking_date)
        if slot_time not in candidates:
            raise SlotOutOfRangeError(resource_type, slot_time)

    @staticmethod
    async def _occupant(
        session: AsyncSession,
        resource_type: str,
        booking_date: date,
        slot_time: str,
        exclude_id: Optional[int] = None,
    ) -> Optional[Booking]:
        statement = select(Booking).where(
            Booking.resource_type == resource_type,
            Booking.booking_date == booking_date,
            Booking.slot_time == slot_time,
        )
        if exclude_id is not None:
            statement = statement.where(Booking.id != exclude_id)
        result = await session.execute(statement)
        return result.scalars().first()

    @staticmethod
    async def _commit(session: AsyncSession, resource_type, booking_date, slot_time):
        try:
            await session.commit()
        except IntegrityError:
            # The unique constraint caught a writer outside this store
            await session.rollback()
            raise SlotTakenError(resource_type, booking_date, slot_time) from None
