"""Dependency injection container for the application."""

import logging
from typing import Optional

import asyncpg
import redis.asyncio as redis

from medichat.application.di.settings import Settings
from medichat.domain.ports import (
    ChatSessionRepository,
    ContactFormRepository,
    HospitalDirectory,
    RateLimiter,
    ReplyProvider,
    ResponseCache,
)
from medichat.domain.services import (
    ChatbotService,
    ContactFormService,
    HandoffService,
    HospitalContextBuilder,
    SessionLockManager,
)
from medichat.infrastructure.adapters.memory import (
    InMemoryChatSessionRepository,
    InMemoryContactFormRepository,
    InMemoryHospitalDirectory,
    InMemoryRateLimiter,
    InMemoryResponseCache,
)
from medichat.infrastructure.adapters.postgres import (
    PostgresChatSessionRepository,
    PostgresContactFormRepository,
    PostgresHospitalDirectory,
)
from medichat.infrastructure.adapters.redis import RedisRateLimiter, RedisResponseCache
from medichat.infrastructure.providers import GeminiReplyProvider
from medichat.infrastructure.realtime import ChatEventHub

logger = logging.getLogger(__name__)


class Container:
    """
    Dependency injection container.

    This container manages the lifecycle of application dependencies
    and provides a clean way to inject them where needed.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the container."""
        self.settings = settings or Settings.from_env()
        self._shared_db_pool: Optional[asyncpg.Pool] = None
        self._redis_client: Optional[redis.Redis] = None
        self._chat_repository: Optional[ChatSessionRepository] = None
        self._hospital_directory: Optional[HospitalDirectory] = None
        self._contact_form_repository: Optional[ContactFormRepository] = None
        self._rate_limiter: Optional[RateLimiter] = None
        self._response_cache: Optional[ResponseCache] = None
        self._reply_provider: Optional[ReplyProvider] = None
        self._event_hub: Optional[ChatEventHub] = None
        self._lock_manager = SessionLockManager()
        self._chatbot_service: Optional[ChatbotService] = None
        self._handoff_service: Optional[HandoffService] = None
        self._contact_form_service: Optional[ContactFormService] = None

    @property
    def uses_postgres(self) -> bool:
        return self.settings.chat_store_backend == "postgres"

    # ============================================
    # STORAGE
    # ============================================

    async def init_chat_repository(self) -> ChatSessionRepository:
        """
        Initialize and return the chat session repository.

        Creates the chat tables on first use when backed by PostgreSQL.

        Returns:
            ChatSessionRepository instance
        """
        if self._chat_repository is None:
            if self.uses_postgres:
                pool = await self._get_shared_db_pool()
                repository = PostgresChatSessionRepository(pool)
                await repository.ensure_schema()
                self._chat_repository = repository
                logger.info("✅ PostgresChatSessionRepository initialized (shared pool)")
            else:
                self._chat_repository = InMemoryChatSessionRepository()
                logger.info("✅ InMemoryChatSessionRepository initialized")

        return self._chat_repository

    async def init_hospital_directory(self) -> HospitalDirectory:
        """
        Initialize and return the read-only hospital directory.

        Returns:
            HospitalDirectory instance
        """
        if self._hospital_directory is None:
            if self.uses_postgres:
                pool = await self._get_shared_db_pool()
                self._hospital_directory = PostgresHospitalDirectory(pool)
                logger.info("✅ PostgresHospitalDirectory initialized (shared pool)")
            else:
                directory = InMemoryHospitalDirectory()
                if self.settings.hospital_directory_file:
                    directory.load_file(self.settings.hospital_directory_file)
                else:
                    logger.warning("⚠️ No HOSPITAL_DIRECTORY_FILE; replies use the generic context")
                self._hospital_directory = directory
                logger.info("✅ InMemoryHospitalDirectory initialized")

        return self._hospital_directory

    async def init_contact_form_repository(self) -> ContactFormRepository:
        """
        Initialize and return the contact form repository.

        Returns:
            ContactFormRepository instance
        """
        if self._contact_form_repository is None:
            if self.uses_postgres:
                pool = await self._get_shared_db_pool()
                repository = PostgresContactFormRepository(pool)
                await repository.ensure_schema()
                self._contact_form_repository = repository
                logger.info("✅ PostgresContactFormRepository initialized (shared pool)")
            else:
                self._contact_form_repository = InMemoryContactFormRepository()
                logger.info("✅ InMemoryContactFormRepository initialized")

        return self._contact_form_repository

    # ============================================
    # GUARD LAYER
    # ============================================

    def _get_redis_client(self) -> redis.Redis:
        if self._redis_client is None:
            self._redis_client = redis.from_url(self.settings.redis_url, decode_responses=True)
            logger.info("✅ Redis client initialized")
        return self._redis_client

    def get_rate_limiter(self) -> RateLimiter:
        """
        Get the visitor rate limiter.

        Returns:
            RateLimiter instance (Redis-backed when CHAT_GUARD_BACKEND=redis)
        """
        if self._rate_limiter is None:
            settings = self.settings
            if settings.chat_guard_backend == "redis":
                self._rate_limiter = RedisRateLimiter(
                    self._get_redis_client(),
                    limit=settings.rate_limit_max_requests,
                    window_ms=settings.rate_limit_window_ms,
                )
            else:
                self._rate_limiter = InMemoryRateLimiter(
                    limit=settings.rate_limit_max_requests,
                    window_ms=settings.rate_limit_window_ms,
                )
            logger.info(f"✅ Rate limiter initialized ({settings.chat_guard_backend})")

        return self._rate_limiter

    def get_response_cache(self) -> ResponseCache:
        """
        Get the reply cache.

        Returns:
            ResponseCache instance (Redis-backed when CHAT_GUARD_BACKEND=redis)
        """
        if self._response_cache is None:
            settings = self.settings
            if settings.chat_guard_backend == "redis":
                self._response_cache = RedisResponseCache(
                    self._get_redis_client(), ttl_ms=settings.cache_ttl_ms
                )
            else:
                self._response_cache = InMemoryResponseCache(
                    ttl_ms=settings.cache_ttl_ms,
                    max_entries=settings.cache_max_entries,
                )
            logger.info(f"✅ Response cache initialized ({settings.chat_guard_backend})")

        return self._response_cache

    # ============================================
    # PROVIDER AND REAL-TIME
    # ============================================

    def get_reply_provider(self) -> ReplyProvider:
        """
        Get the text-generation provider.

        A missing API key is reported on first use, not here.

        Returns:
            ReplyProvider instance
        """
        if self._reply_provider is None:
            settings = self.settings
            if not settings.gemini_api_key:
                logger.warning("⚠️ GEMINI_API_KEY not set, AI replies will fail until configured")
            self._reply_provider = GeminiReplyProvider(
                api_key=settings.gemini_api_key,
                model_name=settings.gemini_model,
                temperature=settings.gemini_temperature,
                max_output_tokens=settings.gemini_max_output_tokens,
                timeout_seconds=settings.provider_timeout_seconds,
            )

        return self._reply_provider

    def get_event_hub(self) -> ChatEventHub:
        """
        Get the WebSocket event hub shared by routes and services.

        Returns:
            ChatEventHub instance
        """
        if self._event_hub is None:
            self._event_hub = ChatEventHub()
            logger.info("✅ ChatEventHub initialized")

        return self._event_hub

    # ============================================
    # SERVICES
    # ============================================

    async def get_chatbot_service(self) -> ChatbotService:
        """
        Get the AI chat service.

        Returns:
            ChatbotService instance
        """
        if self._chatbot_service is None:
            repository = await self.init_chat_repository()
            directory = await self.init_hospital_directory()
            self._chatbot_service = ChatbotService(
                repository=repository,
                context_builder=HospitalContextBuilder(directory),
                provider=self.get_reply_provider(),
                rate_limiter=self.get_rate_limiter(),
                cache=self.get_response_cache(),
                lock_manager=self._lock_manager,
                max_retries=self.settings.provider_max_retries,
                base_delay=self.settings.provider_retry_base_delay,
                max_messages=self.settings.max_session_messages,
            )
            logger.info("✅ ChatbotService initialized")

        return self._chatbot_service

    async def get_handoff_service(self) -> HandoffService:
        """
        Get the AI/human hand-off service.

        Shares the session locks with the chatbot service.

        Returns:
            HandoffService instance
        """
        if self._handoff_service is None:
            repository = await self.init_chat_repository()
            self._handoff_service = HandoffService(
                repository=repository,
                notifier=self.get_event_hub(),
                lock_manager=self._lock_manager,
                max_messages=self.settings.max_session_messages,
            )
            logger.info("✅ HandoffService initialized")

        return self._handoff_service

    async def get_contact_form_service(self) -> ContactFormService:
        """
        Get the website contact form service.

        Returns:
            ContactFormService instance
        """
        if self._contact_form_service is None:
            self._contact_form_service = ContactFormService(
                repository=await self.init_contact_form_repository(),
                directory=await self.init_hospital_directory(),
                notifier=self.get_event_hub(),
            )
            logger.info("✅ ContactFormService initialized")

        return self._contact_form_service

    async def _get_shared_db_pool(self) -> asyncpg.Pool:
        """
        Get or create a shared database pool for ALL services.

        Returns:
            AsyncPG pool instance
        """
        if self._shared_db_pool is None:
            settings = self.settings
            self._shared_db_pool = await asyncpg.create_pool(
                host=settings.db_host,
                port=settings.db_port,
                database=settings.db_name,
                user=settings.db_user,
                password=settings.db_password,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=60,
            )
            logger.info(
                f"✅ Shared database pool initialized "
                f"(min={settings.db_pool_min_size}, max={settings.db_pool_max_size})"
            )

        return self._shared_db_pool

    async def close(self):
        """Close all resources."""
        logger.info("🧹 Closing container resources...")

        if self._redis_client is not None:
            await self._redis_client.aclose()
            logger.info("✅ Redis client closed")

        # Close the shared pool LAST since all repositories use it
        if self._shared_db_pool:
            await self._shared_db_pool.close()
            logger.info("✅ Shared database pool closed")


_container: Optional[Container] = None


def get_container() -> Container:
    """
    Get the global container instance.

    Returns:
        Container instance
    """
    global _container
    if _container is None:
        _container = Container()
        logger.info("🚀 Container created")
    return _container


async def close_container():
    """Close the global container."""
    global _container
    if _container is not None:
        await _container.close()
        _container = None
        logger.info("✅ Container closed")
