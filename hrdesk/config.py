from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings, read from ``HRDESK_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="HRDESK_", env_file=".env", extra="ignore")

    SECRET_KEY: str = "django-insecure-hrdesk-development-key"
    DEBUG: bool = True
    # comma-separated, e.g. "localhost,127.0.0.1"
    ALLOWED_HOSTS: str = "localhost,127.0.0.1,testserver"
    DB_PATH: str = "db.sqlite3"
    LOG_LEVEL: str = "INFO"

    @property
    def allowed_hosts(self) -> list[str]:
        return [host.strip() for host in self.ALLOWED_HOSTS.split(",") if host.strip()]


settings = Settings()
