import os
from typing import List, Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.environment = os.getenv("APP_ENV", "development").strip().lower()
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = self._get_int("PORT", default=5000)
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        self.db_host = os.getenv("DB_HOST", "localhost")
        self.db_port = self._get_int("DB_PORT", default=5432)
        self.db_user = os.getenv("DB_USER")
        self.db_password = os.getenv("DB_PASSWORD")
        self.db_name = os.getenv("DB_NAME")
        self.db_pool_max = self._get_int("DB_POOL_MAX", default=10)
        self.db_pool_queue_limit = self._get_int("DB_POOL_QUEUE_LIMIT", default=0)
        self.db_acquire_timeout = self._get_float("DB_ACQUIRE_TIMEOUT", default=10.0)
        self.db_connect_timeout = self._get_float("DB_CONNECT_TIMEOUT", default=10.0)

        self.cors_allow_origins = self._get_list("CORS_ORIGIN", default=["*"])

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None or not value.strip():
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be a number") from exc

    @staticmethod
    def _get_list(key: str, default: List[str]) -> List[str]:
        value = os.getenv(key)
        if not value:
            return list(default)
        items = [item.strip() for item in value.split(",") if item.strip()]
        return items or list(default)
