from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "orangetv"
    app_env: str = "development"

    database_url: str = "sqlite:///./orangetv.db"

    # "localstorage" = shared-password mode without accounts, "database" = accounts
    STORAGE_TYPE: str = "database"

    # Owner identity; PASSWORD doubles as the session signing key
    USERNAME: str = ""
    PASSWORD: str = ""

    # Session cookie
    SESSION_COOKIE_NAME: str = "auth"
    SESSION_TTL_DAYS: int = 7

    # Login throttling
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_BASE_DELAY: float = 2.0
    LOGIN_MAX_DELAY: float = 300.0

    AVATAR_MAX_BYTES: int = 2 * 1024 * 1024
    SEARCH_RESULT_LIMIT: int = 20
    SEARCH_HISTORY_LIMIT: int = 20
    MESSAGE_PAGE_SIZE: int = 50

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def password_mode(self) -> bool:
        return self.STORAGE_TYPE.lower() == "localstorage"


settings = Settings()
