"""PostgreSQL adapter implementation of HospitalDirectory."""

import json
from typing import Any, Optional

from asyncpg import Pool

from medichat.domain.models import (
    Doctor,
    Hospital,
    MedicalService,
    OpeningHours,
    Schedule,
    WEEKDAYS,
)
from medichat.domain.ports import HospitalDirectory


class PostgresHospitalDirectory(HospitalDirectory):
    """
    Reads the hospital admin app's tables.

    The tables are owned and migrated by the hospital admin app; this
    adapter only selects from them.
    """

    def __init__(self, pool: Pool):
        """
        Initialize the directory.

        Args:
            pool: AsyncPG connection pool
        """
        self.pool = pool

    async def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, name, address, phone, email, description,
                       specialties, facilities, emergency_department,
                       total_beds, opening_hours
                FROM hospitals
                WHERE id = $1
                """,
                hospital_id
            )
        if not row:
            return None

        return Hospital(
            hospital_id=str(row["id"]),
            name=row["name"],
            address=row["address"],
            phone=row["phone"],
            email=row["email"],
            description=row["description"],
            specialties=list(row["specialties"] or []),
            facilities=list(row["facilities"] or []),
            emergency_department=bool(row["emergency_department"]),
            total_beds=row["total_beds"],
            opening_hours=self._parse_opening_hours(row["opening_hours"]),
        )

    async def list_doctors(self, hospital_id: str) -> list[Doctor]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, hospital_id, name, specialty, qualifications,
                       experience, consultation_fee, bio
                FROM doctors
                WHERE hospital_id = $1 AND COALESCE(status, 'active') = 'active'
                ORDER BY name
                """,
                hospital_id
            )
        return [
            Doctor(
                doctor_id=str(row["id"]),
                hospital_id=str(row["hospital_id"]),
                name=row["name"],
                specialty=row["specialty"],
                qualifications=row["qualifications"],
                experience=row["experience"],
                consultation_fee=row["consultation_fee"],
                bio=row["bio"],
            )
            for row in rows
        ]

    async def list_services(self, hospital_id: str) -> list[MedicalService]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, hospital_id, name, description, price, duration
                FROM services
                WHERE hospital_id = $1 AND COALESCE(status, 'active') = 'active'
                ORDER BY name
                """,
                hospital_id
            )
        return [
            MedicalService(
                service_id=str(row["id"]),
                hospital_id=str(row["hospital_id"]),
                name=row["name"],
                description=row["description"],
                price=row["price"],
                duration=row["duration"],
            )
            for row in rows
        ]

    async def list_schedules(self, hospital_id: str) -> list[Schedule]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT doctor_id, hospital_id, days, start_time, end_time, slot_duration
                FROM schedules
                WHERE hospital_id = $1 AND COALESCE(status, 'active') = 'active'
                """,
                hospital_id
            )
        return [
            Schedule(
                doctor_id=str(row["doctor_id"]),
                hospital_id=str(row["hospital_id"]),
                days=list(row["days"] or []),
                start_time=row["start_time"],
                end_time=row["end_time"],
                slot_duration=row["slot_duration"],
            )
            for row in rows
        ]

    def _parse_opening_hours(self, raw: Any) -> dict[str, OpeningHours]:
        """Convert the JSONB opening_hours column to OpeningHours per weekday."""
        if not raw:
            return {}
        if isinstance(raw, str):
            raw = json.loads(raw)

        hours = {}
        for day in WEEKDAYS:
            entry = raw.get(day)
            if not entry:
                continue
            hours[day] = OpeningHours(
                open=entry.get("open"),
                close=entry.get("close"),
                is_closed=bool(entry.get("isClosed", entry.get("is_closed", False))),
            )
        return hours
