"""Daily limits - chat message budget, chat hours and the morning schedule"""

from nuroo.limits.daily import DailyLimits

__all__ = ["DailyLimits"]
