import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_config_logger = logging.getLogger(__name__)

_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PACKAGE_ROOT / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Client settings loaded from environment variables (``RESTSYNC_*``)."""

    # Remote API
    base_url: str = ""
    timeout_seconds: float = 30.0

    # Request conventions (Yii2 REST defaults)
    default_page_size: int = 5
    page_param: str = "page"
    page_size_param: str = "per-page"
    sort_param: str = "sort"
    filter_param: str = "filter"
    expand_param: str = "expand"
    save_expand_param: str = "_expand"

    # Pagination response headers
    page_header: str = "x-pagination-current-page"
    total_count_header: str = "x-pagination-total-count"

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore, outbound HTTP
    log_level_sync: str = "INFO"             # planner, syncer, lifecycle

    model_config = {
        "env_prefix": "RESTSYNC_",
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Normalize the base URL so endpoints can be joined with a plain slash."""
        if self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
            _config_logger.debug("Trailing slash stripped from base_url")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
