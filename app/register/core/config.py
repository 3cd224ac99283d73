from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "PDV-REGISTER"
    DATABASE_URL: str = "sqlite+pysqlite:///./register.db"
    STORE_TIMEZONE: str = "America/Bahia"
    LIST_MAX_PAGE_SIZE: int = 500
    METRICS_ENABLED: bool = True


settings = Settings()
