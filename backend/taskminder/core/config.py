# taskminder/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from loguru import logger
from pathlib import Path
import warnings

PLACEHOLDER_SECRET_KEY = "!!!GENERATE_A_STRONG_SECRET_KEY_32_BYTES_HEX!!!"

def find_dotenv_path(filename='.env') -> str | None:
    """Walks up from this package looking for an env file, then tries the CWD."""
    start_dir = Path(__file__).resolve().parent
    current_dir = start_dir
    for _ in range(10):
        env_path = current_dir / filename
        if env_path.is_file(): logger.debug(f"Found {filename} file at: {env_path}"); return str(env_path)
        parent_dir = current_dir.parent
        if parent_dir == current_dir: break
        current_dir = parent_dir
    env_path_cwd = Path.cwd() / filename
    if env_path_cwd.is_file(): logger.debug(f"Found {filename} file at CWD: {env_path_cwd}"); return str(env_path_cwd)
    logger.debug(f"{filename} not found in parent directories of {start_dir} or CWD.")
    return None

def _env_files() -> tuple[str, ...]:
    # .env.local is read last so it can override .env
    return tuple(p for p in (find_dotenv_path('.env'), find_dotenv_path('.env.local')) if p)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Taskminder"
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    FRONTEND_ORIGIN: str = "http://localhost:3000"

    # Database
    MONGODB_URI: str = ""
    MONGODB_DB_NAME: str | None = None

    # Security
    SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    AUTH_USERNAME: str = "admin"
    AUTH_PASSWORD_HASH: str | None = None
    AUTH_PASSWORD: str | None = None

    # Reminders
    REMINDER_SCANNER_ENABLED: bool = True
    REMINDER_POLL_INTERVAL_SECONDS: float = 60.0
    REMINDER_LOOKAHEAD_SECONDS: float = 300.0

    # Celery (optional out-of-process reminder runner)
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

@lru_cache()
def get_settings() -> Settings:
    """Loads and validates the application settings."""
    logger.info("Loading application settings...")
    env_files_found = _env_files()
    if env_files_found:
        logger.info(f"Loading environment variables from: {', '.join(env_files_found)}")
    else:
        logger.warning("No .env file found. Loading settings from system environment variables only.")

    try:
        settings_instance = Settings()

        required_vars = ['MONGODB_URI', 'SECRET_KEY']
        missing = [k for k in required_vars if not getattr(settings_instance, k, None)]
        if missing:
            logger.critical(f"Missing critical environment variables: {', '.join(missing)}")
            raise ValueError(f"Missing critical environment variables: {', '.join(missing)}")

        if settings_instance.SECRET_KEY == PLACEHOLDER_SECRET_KEY:
            logger.warning("SECURITY WARNING: Using default SECRET_KEY. Generate a strong key (e.g., `openssl rand -hex 32`) and set it in your environment!")
            warnings.warn("SECURITY WARNING: Using default SECRET_KEY. Please generate and set a strong secret key!")

        if not settings_instance.AUTH_PASSWORD_HASH and not settings_instance.AUTH_PASSWORD:
            logger.warning("Neither AUTH_PASSWORD_HASH nor AUTH_PASSWORD is set. Login will reject every attempt.")

        if settings_instance.REMINDER_POLL_INTERVAL_SECONDS <= 0 or settings_instance.REMINDER_LOOKAHEAD_SECONDS < 0:
            raise ValueError("REMINDER_POLL_INTERVAL_SECONDS must be positive and REMINDER_LOOKAHEAD_SECONDS non-negative")

        logger.info("Settings loaded and validated successfully.")
        return settings_instance
    except ValueError as val_err:
        logger.critical(f"CRITICAL ERROR in settings validation: {val_err}")
        raise SystemExit(f"Settings validation failed: {val_err}")

settings = get_settings()
