"""Billsync payment schedule and reconciliation engine."""

from __future__ import annotations

from .config import BaseConfig
from .context import create_app_context
from .services.engine import PaymentScheduleEngine

__all__ = ["BaseConfig", "PaymentScheduleEngine", "create_app_context"]
