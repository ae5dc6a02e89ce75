import logging
import secrets

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_INSECURE_DEFAULT_KEY = "change-me-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BILLBOOK_", extra="ignore")

    db_url: str = "mysql+pymysql://billbook:billbook@db:3306/billbook"
    db_pool_size: int = 10
    db_pool_timeout: int = 30

    admin_email: str = ""
    admin_password: str = ""  # plain text or a bcrypt hash ($2b$...)
    admin_user_id: str = "admin"

    session_max_age: int = 3600  # 1 hour, rolling
    session_same_site: str = "none"
    session_https_only: bool = True

    cors_origins: list[str] = ["http://localhost:5500"]

    rate_limit_requests: int = 300
    rate_limit_window_seconds: int = 900
    login_max_attempts: int = 5
    login_lockout_seconds: int = 60

    gzip_minimum_size: int = 1000
    max_body_bytes: int = 2 * 1024 * 1024
    max_page_size: int = 500
    wire_cache_size: int = 512

    static_dir: str = "./public"
    timezone: str = "UTC"

    host: str = "0.0.0.0"
    port: int = 4000

    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False
    forwarded_allow_ips: str = "127.0.0.1"

    secret_key: str = _INSECURE_DEFAULT_KEY

    def get_secret_key(self) -> str:
        if self.secret_key == _INSECURE_DEFAULT_KEY:
            logger.warning(
                "BILLBOOK_SECRET_KEY is not set — using a random key. "
                "Sessions will not survive restarts. "
                "Set BILLBOOK_SECRET_KEY in your environment or .env file."
            )
            self.secret_key = secrets.token_urlsafe(32)
        return self.secret_key


settings = Settings()
