"""Shared fixtures: fakes for the provider, notifier and clock, plus an in-memory app."""

import asyncio
import os
from typing import Any, Optional, Sequence

import pytest

os.environ.setdefault("CHAT_STORE_BACKEND", "memory")
os.environ.setdefault("CHAT_GUARD_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from medichat.domain.models import (  # noqa: E402
    Doctor,
    Hospital,
    MedicalService,
    OpeningHours,
    Schedule,
)
from medichat.domain.ports import ChatNotifier, ProviderTurn, ReplyProvider  # noqa: E402
from medichat.domain.services import (  # noqa: E402
    ChatbotService,
    ContactFormService,
    HandoffService,
    HospitalContextBuilder,
    SessionLockManager,
)
from medichat.infrastructure.adapters.memory import (  # noqa: E402
    InMemoryChatSessionRepository,
    InMemoryContactFormRepository,
    InMemoryHospitalDirectory,
    InMemoryRateLimiter,
    InMemoryResponseCache,
)

TENANT = "hosp-1"


# ============================================================================
# Fakes
# ============================================================================


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeReplyProvider(ReplyProvider):
    """
    Returns queued outcomes in order.

    A queued exception is raised instead of returned. When the queue is
    empty the provider echoes the message. Setting `gate` holds every call
    until the event is set; `started` is set once a call is in flight.
    """

    def __init__(self, outcomes: Optional[list] = None):
        self.outcomes = list(outcomes or [])
        self.calls: list[dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()

    async def generate(self, context: str, history: Sequence[ProviderTurn], message: str) -> str:
        self.calls.append({"context": context, "history": list(history), "message": message})
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return f"Reply to: {message}"


class RecordingNotifier(ChatNotifier):
    """Keeps every published event."""

    def __init__(self):
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    async def publish(self, room: str, event: str, data: dict[str, Any]) -> int:
        self.events.append((room, event, data))
        return 1

    def named(self, event: str) -> list[tuple[str, dict[str, Any]]]:
        return [(room, data) for room, name, data in self.events if name == event]


def seed_directory(directory: InMemoryHospitalDirectory, tenant_id: str = TENANT) -> None:
    directory.add_hospital(Hospital(
        hospital_id=tenant_id,
        name="St. Mary",
        address="1 Main Street",
        phone="555-0100",
        email="info@stmary.test",
        description="Community hospital",
        specialties=["Cardiology", "Pediatrics"],
        facilities=["Pharmacy"],
        emergency_department=True,
        total_beds=120,
        opening_hours={
            "monday": OpeningHours(open="08:00", close="18:00"),
            "sunday": OpeningHours(is_closed=True),
        },
    ))
    directory.add_doctor(Doctor(
        doctor_id="doc-1",
        hospital_id=tenant_id,
        name="Alice Smith",
        specialty="Cardiology",
        qualifications="MD",
        experience=12,
        consultation_fee=80,
        bio="Heart specialist",
    ))
    directory.add_service(MedicalService(
        service_id="svc-1",
        hospital_id=tenant_id,
        name="ECG",
        description="Electrocardiogram",
        price=45,
        duration=30,
    ))
    directory.add_schedule(Schedule(
        doctor_id="doc-1",
        hospital_id=tenant_id,
        days=["monday", "wednesday"],
        start_time="09:00",
        end_time="13:00",
        slot_duration=20,
    ))


# ============================================================================
# Domain fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryChatSessionRepository:
    return InMemoryChatSessionRepository()


@pytest.fixture
def directory() -> InMemoryHospitalDirectory:
    directory = InMemoryHospitalDirectory()
    seed_directory(directory)
    return directory


@pytest.fixture
def provider() -> FakeReplyProvider:
    return FakeReplyProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def lock_manager() -> SessionLockManager:
    return SessionLockManager()


@pytest.fixture
def chatbot_service(repository, directory, provider, clock, sleeps, lock_manager) -> ChatbotService:
    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    return ChatbotService(
        repository=repository,
        context_builder=HospitalContextBuilder(directory),
        provider=provider,
        rate_limiter=InMemoryRateLimiter(limit=1, window_ms=300_000, clock=clock),
        cache=InMemoryResponseCache(ttl_ms=600_000, clock=clock),
        lock_manager=lock_manager,
        sleep=record_sleep,
    )


@pytest.fixture
def handoff_service(repository, notifier, lock_manager) -> HandoffService:
    return HandoffService(repository=repository, notifier=notifier, lock_manager=lock_manager)


@pytest.fixture
def contact_form_service(directory, notifier) -> ContactFormService:
    return ContactFormService(
        repository=InMemoryContactFormRepository(),
        directory=directory,
        notifier=notifier,
    )


# ============================================================================
# API fixtures
# ============================================================================


@pytest.fixture
def container(monkeypatch, provider, directory):
    """In-memory container installed as the global one."""
    from medichat.application.di import Settings
    from medichat.application.di import container as container_module

    container = container_module.Container(Settings(
        chat_store_backend="memory",
        chat_guard_backend="memory",
        provider_retry_base_delay=0.0,
    ))
    container._reply_provider = provider
    container._hospital_directory = directory
    monkeypatch.setattr(container_module, "_container", container)
    return container


@pytest.fixture
def client(container):
    from fastapi.testclient import TestClient

    from medichat.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def agent_token() -> str:
    from medichat.middleware.auth import create_access_token

    return create_access_token({
        "user_id": "agent-1",
        "hospital_id": TENANT,
        "email": "agent@stmary.test",
        "role": "admin",
    })


@pytest.fixture
def super_admin_token() -> str:
    from medichat.middleware.auth import create_access_token

    return create_access_token({
        "user_id": "root-1",
        "email": "root@medichat.test",
        "role": "super_admin",
    })
