"""Application bootstrap helpers for the TOEIC review engine."""

from .runtime import build_service
from .settings import AppSettings

__all__ = ["build_service", "AppSettings"]
