"""Domain value types and repository protocols."""

from .period import MONTH_NAMES, Period, period_range

__all__ = ["MONTH_NAMES", "Period", "period_range"]
