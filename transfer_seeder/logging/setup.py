import sys
import logging
from typing import Any, Callable

from loguru import logger

from transfer_seeder.config.settings import AppSettings

SENSITIVE_KEYS = ["key", "token", "password", "secret", "cookie"]


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "********"


def build_sensitive_data_filter(
    settings: AppSettings,
) -> Callable[[dict[str, Any]], bool]:
    """Builds a Loguru filter that masks configured secrets in log records."""
    secrets = [
        s
        for s in (settings.supabase_service_role_key, settings.api_football_key)
        if s
    ]

    def mask_value(value: Any) -> Any:
        if isinstance(value, dict):
            return {
                k: (
                    _mask(v)
                    if isinstance(v, str)
                    and any(sk in k.lower() for sk in SENSITIVE_KEYS)
                    else mask_value(v)
                )
                for k, v in value.items()
            }
        if isinstance(value, list):
            return [mask_value(item) for item in value]
        return value

    def sensitive_data_filter(record: dict[str, Any]) -> bool:
        if "extra" in record and isinstance(record["extra"], dict):
            record["extra"].update(mask_value(record["extra"]))

        for secret in secrets:
            if secret in record["message"]:
                record["message"] = record["message"].replace(secret, "********")

        return True  # Keep the record after filtering/masking

    return sensitive_data_filter


class InterceptHandler(logging.Handler):
    """Routes standard logging records (httpx, postgrest) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(settings: AppSettings) -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,  # Locals may hold the service key
        filter=build_sensitive_data_filter(settings),
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.info("Standard logging intercepted.")
