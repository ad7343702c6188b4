import json
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load env values for components that read os.environ directly.
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)


def _coerce_json(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = "sqlite:///./wolf_marketer.db"
    DB_POOL_SIZE: int = 20
    DB_POOL_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30

    # "database" serves requests from DATABASE_URL, "memory" from a process-local MemStorage.
    STORAGE_BACKEND: str = "database"
    # Only honoured by the memory backend; databases are seeded with scripts/seed_demo_data.py.
    SEED_DEMO_DATA: bool = False

    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    WORKFLOW_INITIAL_RUN_DELAY_MINUTES: int = 15
    ACTIVITY_DEFAULT_LIMIT: int = 10

    WITHDRAWAL_MINIMUM: float = 50.0
    WITHDRAWAL_DAILY_LIMIT: float = 500.0
    WITHDRAWAL_FEE_RATE: float = 0.20

    PLATFORM_API_TIMEOUT_SECONDS: float = 15.0
    PLATFORM_HEALTH_URLS: dict[str, str] = Field(default_factory=dict)

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"database", "memory"}:
            raise ValueError("STORAGE_BACKEND must be 'database' or 'memory'")
        return normalized

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = SettingsConfigDict(env_file=".env", env_json_loads=_coerce_json, extra="ignore")


settings = Settings()
