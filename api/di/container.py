"""Centralized dependency injection container."""
import structlog
from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import RedisResource


logger = structlog.get_logger("debate")


class InfrastructureContainer(containers.DeclarativeContainer):
    """Infrastructure layer dependencies."""

    config = providers.Configuration()
    settings = providers.Object(SETTINGS)
    logger = providers.Object(logger)

    # Redis
    redis_db = providers.Resource(
        RedisResource,
        redis_url=str(SETTINGS.REDIS.REDIS_URL),
        socket_timeout=SETTINGS.REDIS.REDIS_SOCKET_TIMEOUT,
    )

    # Conversation store, picked by STORE_BACKEND
    conversation_store = providers.Selector(
        config.STORE.STORE_BACKEND,
        redis=providers.Singleton(
            "api.features.debate.repository.RedisConversationStore",
            redis_resource=redis_db,
            ttl_seconds=SETTINGS.STORE.CONVERSATION_TTL_SECONDS,
            topic_key_prefix=SETTINGS.STORE.TOPIC_KEY_PREFIX,
            history_key_prefix=SETTINGS.STORE.HISTORY_KEY_PREFIX,
        ),
        memory=providers.Singleton(
            "api.features.debate.repository.InMemoryConversationStore",
            ttl_seconds=SETTINGS.STORE.CONVERSATION_TTL_SECONDS,
        ),
    )

    # Generation backend (OpenAI-compatible chat completions)
    generation_backend = providers.Singleton(
        "bot.backends.chat_backend.ChatCompletionBackend",
        model=SETTINGS.LLM.LLM_MODEL,
        base_url=SETTINGS.LLM.LLM_BASE_URL,
        api_key=SETTINGS.LLM.LLM_API_KEY.get_secret_value(),
        timeout=SETTINGS.LLM.LLM_TIMEOUT_SECONDS,
        max_retries=SETTINGS.LLM.LLM_MAX_RETRIES,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    reply_generator = providers.Factory(
        "bot.pipeline.reply_generator.ReplyGenerator",
        store=infrastructure.conversation_store,
        backend=infrastructure.generation_backend,
        temperature=SETTINGS.LLM.LLM_TEMPERATURE,
    )

    debate_service = providers.Factory(
        "api.features.debate.service.DebateService",
        store=infrastructure.conversation_store,
        reply_generator=reply_generator,
        history_limit=SETTINGS.STORE.HISTORY_LIMIT,
        append_failure_policy=SETTINGS.STORE.APPEND_FAILURE_POLICY,
        append_retry_attempts=SETTINGS.STORE.APPEND_RETRY_ATTEMPTS,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    infrastructure = providers.DependenciesContainer()
    services = providers.DependenciesContainer()

    debate_controller = providers.Factory(
        "api.features.debate.controller.DebateController",
        debate_service=services.debate_service,
        store=infrastructure.conversation_store,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.features.debate.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(
        ControllerContainer, infrastructure=infrastructure, services=services
    )
