"""Application settings and configuration.

This module defines all configuration options for the Waitlist Gate service.
Settings are loaded from environment variables (or an ``.env`` file) with
defaults suitable for local development.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION = "production"
POSTGRES_SCHEMES = ("postgres://", "postgresql://")
PSYCOPG_SCHEME = "postgresql+psycopg://"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Provider credentials are optional at load time so the process can start
    without them; the OAuth endpoints report the missing values when used.
    """

    # Application metadata
    app_name: str = Field(default="Waitlist Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # HTTP server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    app_url: str = Field(default="http://localhost:3000", alias="APP_URL")
    frontend_path: str = Field(default="/", alias="FRONTEND_PATH")
    static_dir: str = Field(default="dist", alias="STATIC_DIR")

    # X (Twitter) OAuth 2.0 client
    twitter_client_id: str | None = Field(default=None, alias="TWITTER_CLIENT_ID")
    twitter_client_secret: str | None = Field(default=None, alias="TWITTER_CLIENT_SECRET")
    twitter_authorize_url: str = Field(
        default="https://twitter.com/i/oauth2/authorize",
        alias="TWITTER_AUTHORIZE_URL",
    )
    twitter_token_url: str = Field(
        default="https://api.twitter.com/2/oauth2/token",
        alias="TWITTER_TOKEN_URL",
    )
    twitter_user_url: str = Field(
        default="https://api.twitter.com/2/users/me",
        alias="TWITTER_USER_URL",
    )
    twitter_scopes: str = Field(default="tweet.read users.read", alias="TWITTER_SCOPES")
    provider_http_timeout_seconds: float = Field(
        default=5.0,
        alias="PROVIDER_HTTP_TIMEOUT_SECONDS",
    )

    # OAuth handshake hardening
    oauth_verify_state: bool = Field(default=True, alias="OAUTH_VERIFY_STATE")
    oauth_state_ttl_seconds: int = Field(default=600, alias="OAUTH_STATE_TTL_SECONDS")
    oauth_pkce_enabled: bool = Field(default=False, alias="OAUTH_PKCE_ENABLED")

    # Wallet attach capability
    wallet_attach_enabled: bool = Field(default=True, alias="WALLET_ATTACH_ENABLED")
    wallet_require_existing_entry: bool = Field(
        default=True,
        alias="WALLET_REQUIRE_EXISTING_ENTRY",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./waitlist.db", alias="DATABASE_URL")
    database_ssl_insecure: bool | None = Field(default=None, alias="DATABASE_SSL_INSECURE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis backs the authorization attempt store when configured
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        """Return True when running with the production environment flag."""
        return self.environment.lower() == PRODUCTION

    @property
    def callback_url(self) -> str:
        """Return the redirect URI registered with the identity provider."""
        return f"{self.app_url.rstrip('/')}/api/auth/callback"

    @property
    def sqlalchemy_database_url(self) -> str:
        """Return ``DATABASE_URL`` with a driver SQLAlchemy can load.

        Hosting platforms commonly hand out ``postgres://`` or bare
        ``postgresql://`` URLs; both are pinned to the psycopg driver.

        Returns:
            Database URL suitable for ``create_engine`` and Alembic
        """
        url = self.database_url
        for scheme in POSTGRES_SCHEMES:
            if url.startswith(scheme):
                return PSYCOPG_SCHEME + url[len(scheme):]
        return url

    @property
    def database_connect_args(self) -> dict[str, Any]:
        """Return driver connect arguments for the configured database.

        Production Postgres connections require TLS without verifying the
        server certificate unless ``DATABASE_SSL_INSECURE`` says otherwise.

        Returns:
            Keyword arguments passed through to the DBAPI ``connect()`` call
        """
        url = self.sqlalchemy_database_url
        if url.startswith("sqlite"):
            return {"check_same_thread": False}
        insecure = self.database_ssl_insecure
        if insecure is None:
            insecure = self.is_production
        if url.startswith("postgresql") and insecure:
            return {"sslmode": "require"}
        return {}


settings = Settings()  # type: ignore[call-arg]
