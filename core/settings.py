from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, RedisDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=True)


class RedisSettings(CustomSettings):
    REDIS_HOST: str = Field(default="localhost")
    REDIS_PORT: int = Field(default=6379)
    REDIS_DB: int = Field(default=0)
    REDIS_PASSWORD: SecretStr = Field(default="")
    REDIS_URL: RedisDsn | str = Field(default="")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, gt=0)

    @model_validator(mode="before")
    def validate_redis_url(cls, data: dict):
        if isinstance(data, dict) and not data.get("REDIS_URL"):
            password = data.get("REDIS_PASSWORD", "")
            _built_uri = RedisDsn.build(
                scheme="redis",
                host=data.get("REDIS_HOST", "localhost"),
                port=int(data.get("REDIS_PORT", 6379)),
                path=f"/{data.get('REDIS_DB', 0)}",
                password=password if password else None,
            ).unicode_string()
            data["REDIS_URL"] = _built_uri
        return data


class StoreSettings(CustomSettings):
    """Conversation persistence.

    Env vars:
    - STORE_BACKEND: ``redis`` or ``memory``
    - CONVERSATION_TTL_SECONDS: retention window, refreshed on every write
    - TOPIC_KEY_PREFIX / HISTORY_KEY_PREFIX
    - HISTORY_LIMIT: messages returned to the client per response
    - APPEND_FAILURE_POLICY: ``fail``, ``retry`` or ``drop``
    - APPEND_RETRY_ATTEMPTS
    """

    STORE_BACKEND: Literal["redis", "memory"] = Field(default="redis")
    CONVERSATION_TTL_SECONDS: int = Field(default=24 * 60 * 60, gt=0)
    TOPIC_KEY_PREFIX: str = Field(default="conversation:topic:")
    HISTORY_KEY_PREFIX: str = Field(default="conversation:history:")
    HISTORY_LIMIT: int = Field(default=10, ge=1)
    APPEND_FAILURE_POLICY: Literal["fail", "retry", "drop"] = Field(default="fail")
    APPEND_RETRY_ATTEMPTS: int = Field(default=2, ge=1)


class LLMSettings(CustomSettings):
    """OpenAI-compatible chat completion endpoint used to generate replies.

    Defaults point at the Hugging Face router. ``HF_API_TOKEN`` is accepted
    as an alias for ``LLM_API_KEY``.
    """

    LLM_API_KEY: SecretStr = Field(
        default="", validation_alias=AliasChoices("LLM_API_KEY", "HF_API_TOKEN")
    )
    LLM_BASE_URL: str = Field(default="https://router.huggingface.co/v1")
    LLM_MODEL: str = Field(default="deepseek-ai/DeepSeek-V3-0324")
    LLM_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    LLM_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    LLM_MAX_RETRIES: int = Field(default=1, ge=0)


class AuthSettings(CustomSettings):
    # Empty key disables the x-api-key check
    API_KEY: SecretStr = Field(default="")


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    REDIS: RedisSettings = Field(default_factory=RedisSettings)
    STORE: StoreSettings = Field(default_factory=StoreSettings)
    LLM: LLMSettings = Field(default_factory=LLMSettings)
    AUTH: AuthSettings = Field(default_factory=AuthSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
