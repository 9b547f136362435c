from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(str, Enum):
    DEV = "dev"
    HML = "hml"
    PROD = "prod"


class Settings(BaseSettings):
    APP_ENV: Env = Env.DEV
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite:///./agenda.db"

    # Fuso da clínica: define o "hoje" padrão e a leitura dos bloqueios
    FACILITY_TZ: str = "America/Sao_Paulo"

    DEFAULT_SLOT_MINUTES: int = 30
    MIN_SLOT_MINUTES: int = 5
    MAX_SLOT_MINUTES: int = 480

    # Se True, bloqueios só podem cair em dias com agenda semanal ativa
    ENFORCE_BLOCK_WEEKDAYS: bool = False

    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    ALLOWED_HOSTS: str = "localhost,127.0.0.1"

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        env_file_encoding="utf-8",
        extra="ignore",
        ser_json_timedelta="iso8601",
        ser_json_tz="utc",
    )


# cria instância global
settings = Settings()
