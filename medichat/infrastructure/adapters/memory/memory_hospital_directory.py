"""In-memory adapter implementation of HospitalDirectory."""

import json
import logging
from typing import Any, Optional

from medichat.domain.models import Doctor, Hospital, MedicalService, OpeningHours, Schedule
from medichat.domain.ports import HospitalDirectory

logger = logging.getLogger(__name__)


class InMemoryHospitalDirectory(HospitalDirectory):
    """Directory seeded in code or from a JSON file; used for development and tests."""

    def __init__(self):
        self._hospitals: dict[str, Hospital] = {}
        self._doctors: dict[str, list[Doctor]] = {}
        self._services: dict[str, list[MedicalService]] = {}
        self._schedules: dict[str, list[Schedule]] = {}

    def add_hospital(self, hospital: Hospital) -> None:
        self._hospitals[hospital.hospital_id] = hospital

    def add_doctor(self, doctor: Doctor) -> None:
        self._doctors.setdefault(doctor.hospital_id, []).append(doctor)

    def add_service(self, service: MedicalService) -> None:
        self._services.setdefault(service.hospital_id, []).append(service)

    def add_schedule(self, schedule: Schedule) -> None:
        self._schedules.setdefault(schedule.hospital_id, []).append(schedule)

    def load(self, data: dict[str, Any]) -> int:
        """
        Seed the directory from a parsed document.

        Expected shape::

            {"hospitals": [{"hospital_id": ..., "name": ..., "opening_hours": {...},
                            "doctors": [...], "services": [...], "schedules": [...]}]}

        Nested records take their `hospital_id` from the enclosing hospital.

        Returns:
            Number of hospitals loaded
        """
        hospitals = data.get("hospitals", [])
        for entry in hospitals:
            entry = dict(entry)
            doctors = entry.pop("doctors", [])
            services = entry.pop("services", [])
            schedules = entry.pop("schedules", [])
            hours = entry.pop("opening_hours", {})

            hospital = Hospital(
                **entry,
                opening_hours={day: OpeningHours(**value) for day, value in hours.items()},
            )
            self.add_hospital(hospital)

            for doctor in doctors:
                self.add_doctor(Doctor(hospital_id=hospital.hospital_id, **doctor))
            for service in services:
                self.add_service(MedicalService(hospital_id=hospital.hospital_id, **service))
            for schedule in schedules:
                self.add_schedule(Schedule(hospital_id=hospital.hospital_id, **schedule))

        return len(hospitals)

    def load_file(self, path: str) -> int:
        """Seed the directory from a JSON file (see `load`)."""
        with open(path, encoding="utf-8") as f:
            count = self.load(json.load(f))
        logger.info(f"📚 Loaded {count} hospitals from {path}")
        return count

    async def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        return self._hospitals.get(hospital_id)

    async def list_doctors(self, hospital_id: str) -> list[Doctor]:
        return list(self._doctors.get(hospital_id, []))

    async def list_services(self, hospital_id: str) -> list[MedicalService]:
        return list(self._services.get(hospital_id, []))

    async def list_schedules(self, hospital_id: str) -> list[Schedule]:
        return list(self._schedules.get(hospital_id, []))
