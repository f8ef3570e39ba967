from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    database_url: str = "sqlite+pysqlite:///./bimdb.db"
    base_path: str = ""
    static_path: str | None = str(PACKAGE_DIR / "static")
    vehicles_per_page: int = 20
    vehicle_classes: frozenset[str] = frozenset()
    power_sources: frozenset[str] = frozenset()
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="BIMDB_", frozen=True
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
