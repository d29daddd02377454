import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGIN = "https://q-gen-nu.vercel.app"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    port: int = 5000
    host: str = "0.0.0.0"
    allowed_origin: str = DEFAULT_ALLOWED_ORIGIN
    max_upload_bytes: int = 5 * 1024 * 1024
    max_size: int = 4096
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.
        Unset or malformed variables keep their defaults; the allowed origin is
        stored without a trailing slash so it compares equal to browser Origin
        headers.
        """
        defaults = cls()
        origin = os.getenv("ALLOWED_ORIGIN", defaults.allowed_origin)
        return cls(
            port=_int_env("PORT", defaults.port),
            host=os.getenv("HOST", defaults.host),
            allowed_origin=origin.strip().rstrip("/"),
            max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", defaults.max_upload_bytes),
            max_size=_int_env("MAX_SIZE", defaults.max_size),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )
