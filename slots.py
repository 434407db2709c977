from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import List, Mapping

from exceptions import UnknownResourceTypeError


@dataclass(frozen=True)
class OperatingHours:
    """Half-open hour range [start, end) on a 24-hour clock."""

    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < self.end <= 24:
            raise ValueError(f"Invalid operating hours: [{self.start}, {self.end})")

    def hours(self) -> range:
        return range(self.start, self.end)


# Slot timings per resource type
OPERATING_HOURS: Mapping[str, OperatingHours] = MappingProxyType({
    "Gym": OperatingHours(6, 22),         # 6 AM - 10 PM
    "Pool": OperatingHours(8, 20),        # 8 AM - 8 PM
    "Recreation": OperatingHours(9, 17),  # 9 AM - 5 PM
})


def format_slot(hour: int) -> str:
    return f"{hour:02d}:00"


class SlotCalendar:
    """Candidate hourly slots per resource type, from static configuration only."""

    def __init__(self, operating_hours: Mapping[str, OperatingHours] = OPERATING_HOURS):
        self._operating_hours = MappingProxyType(dict(operating_hours))

    @property
    def resource_types(self) -> List[str]:
        return list(self._operating_hours)

    def operating_hours(self, resource_type: str) -> OperatingHours:
        hours = self._operating_hours.get(resource_type)
        if hours is None:
            raise UnknownResourceTypeError(resource_type)
        return hours

    def candidate_slots(self, resource_type: str, booking_date: date) -> List[str]:
        # The date does not change the result; every day has the same hours.
        return [format_slot(h) for h in self.operating_hours(resource_type).hours()]
