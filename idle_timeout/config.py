import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    idle_timeout: int = 0              # seconds without requests before shutdown; 0 disables

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"

    model_config = {"env_file": ".env"}

    @field_validator("idle_timeout", mode="before")
    @classmethod
    def _disable_invalid_timeout(cls, value):
        """Non-positive or non-numeric timeouts mean "disabled", never an error."""
        if value is None or value == "":
            return 0
        try:
            timeout = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric idle timeout %r, idle shutdown disabled", value)
            return 0
        if timeout < 0:
            logger.warning("Ignoring negative idle timeout %d, idle shutdown disabled", timeout)
            return 0
        return timeout


settings = Settings()
