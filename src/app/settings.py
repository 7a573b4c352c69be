"""Configuration helpers for the TOEIC review engine runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping

from src.engine.errors import InvalidArgumentError
from src.engine.mastery import DEFAULT_DUE_DAYS, validate_due_days_table
from src.engine.scoring import DEFAULT_STRONG_THRESHOLD, DEFAULT_WEAK_THRESHOLD, ScoringThresholds


DEFAULT_MASTERY_DUE_DAYS = ",".join(str(DEFAULT_DUE_DAYS[level]) for level in sorted(DEFAULT_DUE_DAYS))


def _parse_threshold(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number.") from exc


def _parse_due_days(raw: str) -> Dict[int, int]:
    parts = [part.strip() for part in raw.split(",")]
    try:
        days = [int(part) for part in parts]
    except ValueError as exc:
        raise RuntimeError("MASTERY_DUE_DAYS must be a comma-separated list of integers.") from exc
    try:
        return dict(validate_due_days_table(dict(enumerate(days))))
    except InvalidArgumentError as exc:
        raise RuntimeError(
            "MASTERY_DUE_DAYS must list six positive day counts, one per mastery level 0-5."
        ) from exc


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    weak_threshold: float = DEFAULT_WEAK_THRESHOLD
    strong_threshold: float = DEFAULT_STRONG_THRESHOLD
    mastery_due_days: Mapping[int, int] = field(default_factory=lambda: dict(DEFAULT_DUE_DAYS))

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", "TOEIC Review Engine")
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO")

        weak_threshold = _parse_threshold("WEAK_SECTION_THRESHOLD", DEFAULT_WEAK_THRESHOLD)
        strong_threshold = _parse_threshold("STRONG_SECTION_THRESHOLD", DEFAULT_STRONG_THRESHOLD)
        try:
            ScoringThresholds(weak_threshold, strong_threshold)
        except InvalidArgumentError as exc:
            raise RuntimeError(
                "WEAK_SECTION_THRESHOLD and STRONG_SECTION_THRESHOLD must lie between 0 and 1, "
                "with the weak threshold not above the strong one."
            ) from exc

        mastery_due_days = _parse_due_days(os.getenv("MASTERY_DUE_DAYS", DEFAULT_MASTERY_DUE_DAYS))

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            weak_threshold=weak_threshold,
            strong_threshold=strong_threshold,
            mastery_due_days=mastery_due_days,
        )

    def scoring_thresholds(self) -> ScoringThresholds:
        return ScoringThresholds(self.weak_threshold, self.strong_threshold)
