"""Port (interface) for read access to the tenant directory."""

from abc import ABC, abstractmethod
from typing import Optional

from medichat.domain.models import Doctor, Hospital, MedicalService, Schedule


class HospitalDirectory(ABC):
    """
    Read-only view of hospital data owned by the hospital admin app.

    Used to build the assistant's tenant context.
    """

    @abstractmethod
    async def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        """Retrieve a hospital by ID."""
        pass

    @abstractmethod
    async def list_doctors(self, hospital_id: str) -> list[Doctor]:
        """List the hospital's doctors."""
        pass

    @abstractmethod
    async def list_services(self, hospital_id: str) -> list[MedicalService]:
        """List the hospital's active services."""
        pass

    @abstractmethod
    async def list_schedules(self, hospital_id: str) -> list[Schedule]:
        """List the hospital's active doctor schedules."""
        pass
