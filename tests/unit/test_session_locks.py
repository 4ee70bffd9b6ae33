"""Tests for per-session serialization of chat mutations."""

import asyncio

import pytest

from medichat.domain.models import ChatState, MessageRole
from medichat.domain.services import SessionLockManager
from medichat.domain.services.handoff_service import CLOSED_NOTICE, WAITING_NOTICE
from medichat.infrastructure.adapters.memory import InMemoryChatSessionRepository
from tests.conftest import TENANT


class OverlapTrackingRepository(InMemoryChatSessionRepository):
    """Yields inside every read and write and records how many overlap."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.max_active = 0

    async def _enter(self):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)

    async def get_session(self, tenant_id, session_id):
        await self._enter()
        try:
            return await super().get_session(tenant_id, session_id)
        finally:
            self.active -= 1

    async def update_session(self, *args, **kwargs):
        await self._enter()
        try:
            return await super().update_session(*args, **kwargs)
        finally:
            self.active -= 1


class TestSessionLockManager:

    @pytest.mark.asyncio
    async def test_entry_is_dropped_when_last_holder_leaves(self):
        locks = SessionLockManager()

        async with locks.hold(TENANT, "v1"):
            assert locks.is_held(TENANT, "v1")
            assert len(locks) == 1

        assert len(locks) == 0
        assert not locks.is_held(TENANT, "v1")

    @pytest.mark.asyncio
    async def test_queued_waiter_and_late_arrival_never_overlap(self):
        locks = SessionLockManager()
        inside: list[str] = []
        overlaps: list[list[str]] = []
        entered, release = asyncio.Event(), asyncio.Event()

        async def holder():
            async with locks.hold(TENANT, "v1"):
                entered.set()
                await release.wait()

        async def critical(name: str):
            async with locks.hold(TENANT, "v1"):
                inside.append(name)
                if len(inside) > 1:
                    overlaps.append(list(inside))
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                inside.remove(name)

        first = asyncio.create_task(holder())
        await entered.wait()
        waiter = asyncio.create_task(critical("waiter"))
        await asyncio.sleep(0)
        release.set()
        await first
        late = asyncio.create_task(critical("late"))
        await asyncio.gather(waiter, late)

        assert overlaps == []
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_sessions_do_not_block_each_other(self):
        locks = SessionLockManager()

        async with locks.hold(TENANT, "v1"):
            await asyncio.wait_for(self._enter_and_leave(locks, "v2"), timeout=1)

    @staticmethod
    async def _enter_and_leave(locks: SessionLockManager, session_id: str):
        async with locks.hold(TENANT, session_id):
            pass


class TestConcurrentMutations:

    @pytest.mark.asyncio
    async def test_request_human_waits_for_in_flight_reply(
        self, chatbot_service, handoff_service, provider, repository
    ):
        provider.gate = asyncio.Event()

        reply = asyncio.create_task(chatbot_service.generate_reply(TENANT, "v1", "hello"))
        await provider.started.wait()
        handoff = asyncio.create_task(handoff_service.request_human(TENANT, "v1", "Ann", None))
        await asyncio.sleep(0)
        provider.gate.set()
        await asyncio.gather(reply, handoff)

        session = await repository.get_session(TENANT, "v1")
        assert [m.content for m in session.messages] == ["hello", "Reply to: hello", WAITING_NOTICE]
        assert session.state == ChatState.HUMAN_WAITING

    @pytest.mark.asyncio
    async def test_close_is_never_followed_by_an_ai_reply(
        self, chatbot_service, handoff_service, provider, repository
    ):
        await chatbot_service.generate_reply(TENANT, "v1", "first")
        session = await repository.get_session(TENANT, "v1")
        provider.started.clear()
        provider.gate = asyncio.Event()

        reply = asyncio.create_task(chatbot_service.generate_reply(TENANT, "v1", "second"))
        await provider.started.wait()
        closing = asyncio.create_task(handoff_service.close(TENANT, session.chat_id))
        await asyncio.sleep(0)
        provider.gate.set()
        await asyncio.gather(reply, closing)

        session = await repository.get_session(TENANT, "v1")
        assert session.state == ChatState.CLOSED
        assert session.messages[-1].content == CLOSED_NOTICE
        assert session.messages[-2].content == "Reply to: second"
        assert [m.content for m in session.messages].count(CLOSED_NOTICE) == 1

    @pytest.mark.asyncio
    async def test_clear_waits_for_in_flight_reply(
        self, chatbot_service, provider, repository, lock_manager
    ):
        provider.gate = asyncio.Event()

        reply = asyncio.create_task(chatbot_service.generate_reply(TENANT, "v1", "hello"))
        await provider.started.wait()
        clearing = asyncio.create_task(chatbot_service.clear_history(TENANT, "v1"))
        await asyncio.sleep(0)
        provider.gate.set()
        _, deleted = await asyncio.gather(reply, clearing)

        assert deleted is True
        assert await repository.get_session(TENANT, "v1") is None
        assert len(lock_manager) == 0

    @pytest.mark.asyncio
    async def test_concurrent_visitor_messages_are_both_kept(self, notifier, lock_manager):
        from medichat.domain.services import HandoffService

        repository = OverlapTrackingRepository()
        service = HandoffService(repository=repository, notifier=notifier, lock_manager=lock_manager)
        await service.request_human(TENANT, "v1", "Ann", None)
        repository.max_active = 0

        await asyncio.gather(
            service.send_user_message(TENANT, "v1", "one"),
            service.send_user_message(TENANT, "v1", "two"),
        )

        session = await repository.get_session(TENANT, "v1")
        user_messages = [m.content for m in session.messages if m.role == MessageRole.USER]
        assert sorted(user_messages) == ["one", "two"]
        assert repository.max_active == 1
