import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .client.errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "DMGT Assessment Platform"
APP_VERSION = "2.0.0"
ASSESSMENT_TYPES = ("Company", "Employee")

_default_questions = Path(__file__).resolve().parents[2] / "questions.json"
QUESTIONS_PATH = Path(os.getenv("QUESTIONS_PATH", str(_default_questions)))
DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/dmgt_assessment")
UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", str(Path(__file__).resolve().parents[1] / "uploads")))
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

API_URL = os.getenv("API_URL", "http://localhost:3001")
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
AUTO_SAVE_INTERVAL = int(os.getenv("AUTO_SAVE_INTERVAL", "30000"))
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "30"))
API_RETRY_ATTEMPTS = int(os.getenv("API_RETRY_ATTEMPTS", "3"))
API_RETRY_DELAY_MS = int(os.getenv("API_RETRY_DELAY_MS", "1000"))

ENABLE_FILE_UPLOAD = os.getenv("ENABLE_FILE_UPLOAD", "true").lower() != "false"
ENABLE_AUTO_SAVE = os.getenv("ENABLE_AUTO_SAVE", "true").lower() != "false"
ENABLE_ANALYTICS = os.getenv("ENABLE_ANALYTICS", "false").lower() == "true"
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))

SUPPORTED_FILE_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
]

BACKUP_DIR = Path(os.getenv("BACKUP_DIR", str(Path.home() / ".dmgt_assessment")))
PROGRESS_STORAGE_KEY = "dmgt_assessment_progress"
MIN_COMPANY_ID_LENGTH = 2
MIN_EMPLOYEE_ID_LENGTH = 2
MIN_AUTO_SAVE_INTERVAL = 5000
MAX_FILES_PER_QUESTION = 5


@dataclass
class ClientConfig:
    api_url: str
    aws_region: str
    environment: str
    auto_save_interval: int
    timeout: float = 30.0
    retry_attempts: int = 3
    retry_delay: float = 1.0
    feature_flags: dict[str, Any] = field(default_factory=dict)

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    def feature_enabled(self, name: str) -> bool:
        return bool(self.feature_flags.get(name, False))


def get_feature_flags() -> dict[str, Any]:
    return {
        "file_upload": ENABLE_FILE_UPLOAD,
        "auto_save": ENABLE_AUTO_SAVE,
        "analytics": ENABLE_ANALYTICS,
        "max_file_size": MAX_FILE_SIZE,
    }


def validate_client_config(config: ClientConfig) -> None:
    if not config.api_url:
        raise ConfigError("API URL is required")
    parsed = urlparse(config.api_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError("Invalid API URL format")
    if not config.aws_region:
        raise ConfigError("AWS Region is required")
    if config.environment not in {"dev", "prod"}:
        raise ConfigError('Environment must be either "dev" or "prod"')
    if config.auto_save_interval < MIN_AUTO_SAVE_INTERVAL:
        logger.warning("[config] auto-save interval %sms is very short, this may impact performance", config.auto_save_interval)


def get_client_config(**overrides: Any) -> ClientConfig:
    """Build the client configuration from the environment.

    Keyword overrides win over environment values, which keeps tests and
    scripts free of os.environ juggling.
    """
    values: dict[str, Any] = {
        "api_url": API_URL,
        "aws_region": AWS_REGION,
        "environment": ENVIRONMENT,
        "auto_save_interval": AUTO_SAVE_INTERVAL,
        "timeout": API_TIMEOUT_SECONDS,
        "retry_attempts": API_RETRY_ATTEMPTS,
        "retry_delay": API_RETRY_DELAY_MS / 1000.0,
        "feature_flags": get_feature_flags(),
    }
    values.update(overrides)
    config = ClientConfig(**values)
    validate_client_config(config)
    return config
