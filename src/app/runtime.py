"""Bootstrap logic for running the review engine service."""

from __future__ import annotations

import logging
from typing import Optional

from src.app.settings import AppSettings
from src.db import get_session_factory, run_migrations_if_needed
from src.engine.clock import Clock
from src.services import ProgressService


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_service(settings: AppSettings, clock: Optional[Clock] = None) -> ProgressService:
    """Prepare the database and return a progress service wired to it."""
    _configure_logging(settings.log_level)

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    service = ProgressService(
        get_session_factory(),
        clock=clock,
        thresholds=settings.scoring_thresholds(),
        mastery_due_days=settings.mastery_due_days,
    )
    LOGGER.info(
        "%s is ready in %s mode (weak < %.2f, strong >= %.2f).",
        settings.app_name,
        settings.app_env,
        settings.weak_threshold,
        settings.strong_threshold,
    )
    return service
