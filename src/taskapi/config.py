"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TASKAPI_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "change-me-in-production-this-is-not-a-secret"


class Settings(BaseSettings):
    """All app configuration. Set via TASKAPI_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./taskapi.db"

    # Auth
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "taskapi"
    jwt_audience: str = "taskapi-clients"

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Insert the demo admin/user accounts and tasks into an empty database
    seed_demo_data: bool = False

    model_config = {"env_prefix": "TASKAPI_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Refuse to sign tokens with the default secret outside development."""
        if (
            self.environment != "development"
            and self.jwt_secret == DEFAULT_JWT_SECRET
        ):
            raise ValueError(
                "TASKAPI_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton — import this everywhere
settings = Settings()
