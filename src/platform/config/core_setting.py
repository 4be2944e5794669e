from pathlib import Path
from typing import Annotated, List, Literal

import orjson
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Opera Guest Gateway'
    VERSION: str = '1.0.0'
    DEBUG: bool = False

    # HTTP server
    HOST: str = '0.0.0.0'
    PORT: int = 3000
    SHUTDOWN_GRACE_SECONDS: int = 30  # in-flight requests are cancelled after this

    # Database
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'opera'
    POSTGRES_PASSWORD: SecretStr = SecretStr('opera')
    POSTGRES_DB: str = 'opera'
    POSTGRES_PORT: int = 5432

    @property
    def DATABASE_DSN(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # asyncpg pool
    ASYNCPG_POOL_MIN_SIZE: int = 2
    ASYNCPG_POOL_MAX_SIZE: int = 10
    ASYNCPG_POOL_TIMEOUT: float = 60.0  # acquire timeout (seconds)
    ASYNCPG_POOL_COMMAND_TIMEOUT: float = 60.0
    ASYNCPG_POOL_MAX_INACTIVE_LIFETIME: float = 60.0  # idle connections are closed after this
    POOL_CLOSE_TIMEOUT_SECONDS: float = 10.0

    # License gate
    LICENSE_HEADER: str = 'x-api-key'
    HEALTH_PATH: str = '/health'

    # Guest contract: 'confirmation' (multi-field update keyed by confirmation number)
    # or 'name_id' (single display-name update keyed by name id)
    GUEST_CONTRACT: Literal['confirmation', 'name_id'] = 'confirmation'

    # Request bodies above this are answered with 413; stored audit bodies are cut to AUDIT_BODY_MAX_CHARS
    MAX_REQUEST_BODY_BYTES: int = 100 * 1024
    AUDIT_BODY_MAX_CHARS: int = 10_000

    # Background tasks (audit rows, license usage counters)
    BACKGROUND_DRAIN_TIMEOUT_SECONDS: float = 5.0

    # CORS
    # Comma-separated or JSON array
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = [
        'http://localhost:3000',
        'http://localhost:5173',
    ]

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.strip().startswith('['):
            return orjson.loads(v)
        if isinstance(v, str):
            return [i.strip() for i in v.split(',') if i.strip()]
        if isinstance(v, list):
            return v
        return []


settings = Settings()  # type: ignore
