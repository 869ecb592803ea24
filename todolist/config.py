"""
Application configuration loaded from environment variables.

Uses pydantic-settings to define typed configuration that automatically reads
from environment variables, so nothing environment-specific is hardcoded.

Every field maps to an environment variable with the TODO_ prefix:
- TODO_HOST, TODO_PORT, TODO_LOG_LEVEL control the HTTP server
- TODO_JWT_SECRET_KEY / TODO_JWT_AUDIENCE control token validation
- TODO_SEED_TENANT_ID turns on the sample data seeded at startup

Locally, you can set them via environment variables or a .env file.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Service configuration with environment variable bindings.

    For example, `host` reads from TODO_HOST and `jwt_secret_key` reads
    from TODO_JWT_SECRET_KEY.
    """

    # --- Server settings ---

    host: str = "0.0.0.0"
    port: int = 8080

    # Maps to Python's logging levels ("info", "debug", ...).
    log_level: str = "info"

    # --- Token validation ---

    # Default is for local development only - NEVER use this in production.
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"

    # When set, tokens must carry a matching "aud" claim.
    jwt_audience: str | None = None

    # --- Claim names read by the identity extractor ---

    tenant_claim: str = "tid"
    scope_claim: str = "scp"
    roles_claim: str = "roles"
    username_claim: str = "preferred_username"

    # --- Sample data ---

    # Tenant that receives the two sample Todos at startup. Unset means
    # the store starts empty.
    seed_tenant_id: str | None = None
    seed_owner: str = "admin"

    model_config = {
        "env_prefix": "TODO_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Singleton instance: import this from other modules.
settings = Settings()
