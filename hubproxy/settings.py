from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from hubproxy.utils.settings_utils import DockerSecretsSettingsSource


class GeneralConfig(BaseSettings):
    PUBLIC_URL: str = ""
    """Externally visible base URL (e.g. "https://hub.example.com").
    Used as the realm of the 401 challenge; derived from the request when empty.
    """

    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = ""


class AuthConfig(BaseSettings):
    AUTH_CREDENTIALS: str = ""
    """Shared secret in "user:password" form, matched against the decoded
    Basic credential. Leave empty to let anyone use the proxy.
    """


class UpstreamConfig(BaseSettings):
    DEFAULT_UPSTREAM: str = "registry-1.docker.io"

    UPSTREAM_CONNECT_TIMEOUT: float = 30.0
    UPSTREAM_READ_TIMEOUT: float = 1800.0  # 30 minutes for large layer downloads
    UPSTREAM_WRITE_TIMEOUT: float = 1800.0
    UPSTREAM_POOL_TIMEOUT: float = 10.0


class Settings(
    AuthConfig,
    GeneralConfig,
    UpstreamConfig,
    BaseSettings,
):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Define the priority order for settings sources.

        Priority (highest to lowest):
        1. Docker secrets from files (reads *_FILE env vars)
        2. Environment variables
        3. .env files
        4. Default values
        """
        return (
            init_settings,
            DockerSecretsSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
