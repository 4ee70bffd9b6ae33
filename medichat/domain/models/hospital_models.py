"""Read-only views of the tenant directory (hospital, doctors, services, schedules)."""

from dataclasses import dataclass, field
from typing import Optional


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True)
class OpeningHours:
    """Opening hours for a single weekday."""

    open: Optional[str] = None
    close: Optional[str] = None
    is_closed: bool = False


@dataclass(frozen=True)
class Hospital:
    """A tenant of the platform."""

    hospital_id: str
    name: str
    address: str
    phone: str
    email: str
    description: Optional[str] = None
    specialties: list[str] = field(default_factory=list)
    facilities: list[str] = field(default_factory=list)
    emergency_department: bool = False
    total_beds: Optional[int] = None
    opening_hours: dict[str, OpeningHours] = field(default_factory=dict)


@dataclass(frozen=True)
class Doctor:
    """A doctor working at a hospital."""

    doctor_id: str
    hospital_id: str
    name: str
    specialty: str
    qualifications: Optional[str] = None
    experience: Optional[int] = None
    consultation_fee: Optional[float] = None
    bio: Optional[str] = None


@dataclass(frozen=True)
class MedicalService:
    """A bookable hospital service."""

    service_id: str
    hospital_id: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[int] = None


@dataclass(frozen=True)
class Schedule:
    """A doctor's weekly schedule."""

    doctor_id: str
    hospital_id: str
    days: list[str] = field(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    slot_duration: Optional[int] = None
