"""Builds the tenant context string given to the assistant."""

import logging
from typing import Optional

from medichat.domain.models import (
    Doctor,
    Hospital,
    MedicalService,
    Schedule,
    WEEKDAYS,
)
from medichat.domain.ports import HospitalDirectory

logger = logging.getLogger(__name__)

FALLBACK_CONTEXT = (
    "You are a helpful AI assistant for a hospital. Help users with inquiries "
    "about appointments and services."
)

ASSISTANT_INSTRUCTIONS = (
    "You should help users with inquiries about appointments, doctor availability, "
    "hospital services, and general medical information related to this hospital. "
    "Be friendly, professional, and informative. Do not give diagnoses; suggest "
    "booking an appointment or contacting emergency services when appropriate."
)


def _money(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{value:g}"


class HospitalContextBuilder:
    """Turns tenant directory data into a prompt preamble."""

    def __init__(self, directory: HospitalDirectory):
        self.directory = directory

    async def build(self, tenant_id: str) -> str:
        """
        Build the context for a tenant.

        Falls back to a generic assistant context if any lookup fails,
        so context problems never fail a chat request.
        """
        try:
            hospital = await self.directory.get_hospital(tenant_id)
            if hospital is None:
                raise LookupError(f"Hospital {tenant_id} not found")

            doctors = await self.directory.list_doctors(tenant_id)
            services = await self.directory.list_services(tenant_id)
            schedules = await self.directory.list_schedules(tenant_id)
        except Exception as e:
            logger.error(f"❌ Error building hospital context for {tenant_id}: {e}")
            return FALLBACK_CONTEXT

        return self.render(hospital, doctors, services, schedules)

    def render(
        self,
        hospital: Hospital,
        doctors: list[Doctor],
        services: list[MedicalService],
        schedules: list[Schedule],
    ) -> str:
        lines = [
            f"You are a helpful AI assistant for {hospital.name} hospital.",
            "",
            "Hospital Information:",
            f"Name: {hospital.name}",
            f"Address: {hospital.address}",
            f"Phone: {hospital.phone}",
            f"Email: {hospital.email}",
        ]
        if hospital.description:
            lines.append(f"About: {hospital.description}")
        if hospital.specialties:
            lines.append(f"Specialties: {', '.join(hospital.specialties)}")
        if hospital.facilities:
            lines.append(f"Facilities: {', '.join(hospital.facilities)}")
        if hospital.emergency_department:
            lines.append("Emergency Department: Available 24/7")
        if hospital.total_beds:
            lines.append(f"Total Beds: {hospital.total_beds}")

        if hospital.opening_hours:
            lines += ["", "Opening Hours:"]
            for day in WEEKDAYS:
                hours = hospital.opening_hours.get(day)
                if hours is None:
                    continue
                if hours.is_closed:
                    lines.append(f"{day.capitalize()}: Closed")
                else:
                    lines.append(f"{day.capitalize()}: {hours.open or '?'} - {hours.close or '?'}")

        if services:
            lines += ["", "Available Services:"]
            for service in services:
                lines.append(f"- {service.name}")
                if service.description:
                    lines.append(f"  Description: {service.description}")
                lines.append(
                    f"  Price: {_money(service.price)}, Duration: {service.duration or 'N/A'} minutes"
                )

        if doctors:
            schedule_by_doctor = {s.doctor_id: s for s in schedules}
            lines += ["", "Available Doctors:"]
            for doctor in doctors:
                lines.extend(self._render_doctor(doctor, schedule_by_doctor.get(doctor.doctor_id)))

        lines += ["", ASSISTANT_INSTRUCTIONS]
        return "\n".join(lines)

    def _render_doctor(self, doctor: Doctor, schedule: Optional[Schedule]) -> list[str]:
        lines = [f"- Dr. {doctor.name} ({doctor.specialty})"]
        if doctor.qualifications:
            lines.append(f"  Qualifications: {doctor.qualifications}")
        if doctor.experience:
            lines.append(f"  Experience: {doctor.experience} years")
        if doctor.consultation_fee is not None:
            lines.append(f"  Consultation Fee: {_money(doctor.consultation_fee)}")
        if doctor.bio:
            lines.append(f"  Bio: {doctor.bio}")
        if schedule is not None:
            days = ", ".join(d.capitalize() for d in schedule.days) or "N/A"
            lines.append(
                f"  Schedule: {days}, {schedule.start_time or '?'} - {schedule.end_time or '?'}"
                f" ({schedule.slot_duration or 'N/A'} min slots)"
            )
        return lines
