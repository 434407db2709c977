import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import authenticate
from config import Settings, load_settings
from database import create_engine, init_db
from exceptions import BookingError, InvalidInputError, SlotTakenError
from store import BookingStore

logger = logging.getLogger(__name__)

DEMO_BOOKINGS = [
    ("Gym", "John Doe", date(2025, 9, 25), "10:00"),
    ("Pool", "Alice", date(2025, 9, 25), "14:00"),
]

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: Any) -> date:
    """Only YYYY-MM-DD; pydantic would also take timestamps and other shapes."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE.match(value):
        raise ValueError("date must be YYYY-MM-DD")
    return date.fromisoformat(value)


# Pydantic Schemas for Request/Response
# Wire names are type/name/date/time; attribute names match models.Booking.
class BookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    resource_type: str = Field(alias="type", min_length=1)
    owner_name: str = Field(alias="name", min_length=1)
    booking_date: date = Field(alias="date")
    slot_time: str = Field(alias="time", pattern=r"^\d{2}:\d{2}$")

    @field_validator("booking_date", mode="before")
    @classmethod
    def iso_date(cls, value):
        return parse_iso_date(value)


class BookingRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    resource_type: str = Field(alias="type")
    owner_name: str = Field(alias="name")
    booking_date: date = Field(alias="date")
    slot_time: str = Field(alias="time")


class BookingUpdated(BaseModel):
    message: str
    appointment: BookingRead


class BookingCancelled(BaseModel):
    message: str
    cancelled: BookingRead


class AvailableSlots(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_type: str = Field(alias="type")
    booking_date: date = Field(alias="date")
    slots: List[str]


class ResourceTypeRead(BaseModel):
    type: str
    start: int
    end: int


def get_store(request: Request) -> BookingStore:
    return request.app.state.store


def create_app(settings: Optional[Settings] = None, store: Optional[BookingStore] = None) -> FastAPI:
    settings = settings or load_settings()
    if store is None:
        store = BookingStore(create_engine(settings.database_url, echo=settings.sql_echo))

    app = FastAPI(title="Resource Slot Booking")
    app.state.settings = settings
    app.state.store = store

    @app.on_event("startup")
    async def on_startup():
        await init_db(store.engine)
        if settings.seed_demo_data:
            seeded = 0
            for resource_type, owner_name, booking_date, slot_time in DEMO_BOOKINGS:
                try:
                    await store.create(resource_type, owner_name, booking_date, slot_time)
                except SlotTakenError:
                    logger.info("Demo slot %s %s %s already booked", resource_type, booking_date, slot_time)
                    continue
                seeded += 1
            logger.info("Seeded %d demo bookings", seeded)

    # Every request is gated, including ones that match no route
    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        rejection = authenticate(request, settings.api_token)
        if rejection is not None:
            return rejection
        return await call_next(request)

    @app.on_event("shutdown")
    async def on_shutdown():
        await store.engine.dispose()

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = InvalidInputError(details={"errors": jsonable_encoder(exc.errors())})
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # --- GET /resource-types ---
    @app.get("/resource-types", response_model=List[ResourceTypeRead])
    async def list_resource_types(store: BookingStore = Depends(get_store)):
        calendar = store.calendar
        return [
            ResourceTypeRead(
                type=resource_type,
                start=calendar.operating_hours(resource_type).start,
                end=calendar.operating_hours(resource_type).end,
            )
            for resource_type in calendar.resource_types
        ]

    # --- GET /slots/{type}/{date}: free slots only ---
    @app.get("/slots/{resource_type}/{booking_date}", response_model=AvailableSlots)
    async def get_available_slots(
        resource_type: str,
        booking_date: str,
        store: BookingStore = Depends(get_store),
    ):
        try:
            parsed_date = parse_iso_date(booking_date)
        except ValueError:
            raise InvalidInputError("Invalid date", details={"date": booking_date}) from None
        slots = await store.available_slots(resource_type, parsed_date)
        return AvailableSlots(resource_type=resource_type, booking_date=parsed_date, slots=slots)

    # --- POST /appointments ---
    @app.post("/appointments", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
    async def create_appointment(
        booking_data: BookingRequest,
        store: BookingStore = Depends(get_store),
    ):
        booking = await store.create(
            booking_data.resource_type,
            booking_data.owner_name,
            booking_data.booking_date,
            booking_data.slot_time,
        )
        return BookingRead.model_validate(booking)

    # --- GET /appointments (for debugging) ---
    @app.get("/appointments", response_model=List[BookingRead])
    async def list_appointments(store: BookingStore = Depends(get_store)):
        return [BookingRead.model_validate(b) for b in await store.list_all()]

    # --- GET /appointments/{id} ---
    @app.get("/appointments/{appointment_id}", response_model=BookingRead)
    async def get_appointment(appointment_id: int, store: BookingStore = Depends(get_store)):
        return BookingRead.model_validate(await store.get(appointment_id))

    # --- PUT /appointments/{id}: reschedule ---
    @app.put("/appointments/{appointment_id}", response_model=BookingUpdated)
    async def update_appointment(
        appointment_id: int,
        payload: Optional[Dict[str, Any]] = Body(default=None),
        store: BookingStore = Depends(get_store),
    ):
        # Unknown id is reported before any problem with the body
        await store.get(appointment_id)
        try:
            booking_data = BookingRequest.model_validate(payload or {})
        except ValidationError as exc:
            raise InvalidInputError(
                details={"errors": jsonable_encoder(exc.errors(include_url=False, include_context=False))}
            ) from None

        booking = await store.update(
            appointment_id,
            booking_data.resource_type,
            booking_data.owner_name,
            booking_data.booking_date,
            booking_data.slot_time,
        )
        return BookingUpdated(
            message=f"Appointment {appointment_id} updated",
            appointment=BookingRead.model_validate(booking),
        )

    # --- DELETE /appointments/{id} ---
    @app.delete("/appointments/{appointment_id}", response_model=BookingCancelled)
    async def cancel_appointment(appointment_id: int, store: BookingStore = Depends(get_store)):
        booking = await store.cancel(appointment_id)
        return BookingCancelled(
            message=f"Appointment {appointment_id} cancelled",
            cancelled=BookingRead.model_validate(booking),
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


def run() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = create_app(settings)
    logger.info("Booking server running at http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
