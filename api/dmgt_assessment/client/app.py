"""Client start-up: load configuration, then hand back the first page to show."""

import logging
from dataclasses import dataclass
from typing import Any

from ..config import ClientConfig, get_client_config
from .errors import ConfigError
from .session import AssessmentSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppState:
    page: str
    config: ClientConfig | None = None
    error: str | None = None
    actions: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.config is not None


def initialize_app(**overrides: Any) -> AppState:
    """Configuration problems become the error page, never an exception."""
    try:
        config = get_client_config(**overrides)
    except ConfigError as exc:
        logger.error("[app] configuration error: %s", exc)
        return AppState(
            page="error",
            error=f"Configuration error: {exc}. Please check your environment settings.",
            actions=("reload",),
        )
    logger.info("[app] initialized environment=%s api=%s", config.environment, config.api_url)
    return AppState(page="welcome", config=config)


def create_session(app_state: AppState, **kwargs: Any) -> AssessmentSession:
    if app_state.config is None:
        raise ConfigError(app_state.error or "application is not configured")
    return AssessmentSession.from_config(app_state.config, **kwargs)
