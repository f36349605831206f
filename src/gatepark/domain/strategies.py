# File: src/gatepark/domain/strategies.py
"""
Strategy Pattern Implementation for exit-gate pricing

Each exit gate is bound to one PricingStrategy when it is built. Strategies
bill by whole units with ceiling rounding: any partial minute or hour counts
as a full one. Elapsed time at or below zero bills nothing.

Key Strategies:
1. PerMinutePricingStrategy - fixed rate per started minute
2. PerHourPricingStrategy - fixed rate per started hour
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Union
import logging

from .models import Money


DEFAULT_PER_MINUTE_RATE = Decimal('0.05')
DEFAULT_PER_HOUR_RATE = Decimal('3.00')


def billable_units(entry_time: datetime, exit_time: datetime, unit: timedelta) -> int:
    """
    Number of started units between entry and exit
    Uses exact elapsed time, so 60s is one minute and 61s is two
    """
    if unit <= timedelta(0):
        raise ValueError("Billing unit must be positive")

    elapsed = exit_time - entry_time
    if elapsed <= timedelta(0):
        return 0

    # timedelta // timedelta floors; the remainder decides the ceiling
    units, remainder = divmod(elapsed, unit)
    if remainder:
        units += 1
    return units


# ============================================================================
# STRATEGY INTERFACE
# ============================================================================

class PricingStrategy(ABC):
    """
    Abstract base class for pricing strategies
    Defines the interface for fee calculation algorithms
    """

    key: str = ""

    def __init__(self, rate: Union[Decimal, str, int, None] = None, currency: str = "USD"):
        self.logger = logging.getLogger(self.__class__.__name__)
        rate = self.default_rate() if rate is None else Decimal(str(rate))
        if rate < Decimal('0'):
            raise ValueError(f"Rate cannot be negative: {rate}")
        self._rate = Money(rate, currency)

    @staticmethod
    @abstractmethod
    def default_rate() -> Decimal:
        """Rate used when none is configured"""

    @property
    @abstractmethod
    def unit(self) -> timedelta:
        """Length of one billable unit"""

    @property
    def rate(self) -> Money:
        return self._rate

    def calculate_fee(self, entry_time: datetime, exit_time: datetime) -> Money:
        """
        Calculate the fee for a stay
        Returns: rate times started units, rounded to cents
        """
        units = billable_units(entry_time, exit_time, self.unit)
        fee = (self._rate * units).rounded()
        self.logger.debug(
            f"{units} billable unit(s) of {self.unit} at {self._rate.format()} = {fee.format()}"
        )
        return fee

    @property
    def strategy_name(self) -> str:
        """Human-readable strategy name"""
        return self.__class__.__name__.replace("PricingStrategy", "")

    def __str__(self) -> str:
        return f"{self.strategy_name} pricing at {self._rate.format()}"


# ============================================================================
# PRICING STRATEGIES
# ============================================================================

class PerMinutePricingStrategy(PricingStrategy):
    """Bills every started minute"""

    key = "per_minute"

    @staticmethod
    def default_rate() -> Decimal:
        return DEFAULT_PER_MINUTE_RATE

    @property
    def unit(self) -> timedelta:
        return timedelta(minutes=1)


class PerHourPricingStrategy(PricingStrategy):
    """Bills every started hour"""

    key = "per_hour"

    @staticmethod
    def default_rate() -> Decimal:
        return DEFAULT_PER_HOUR_RATE

    @property
    def unit(self) -> timedelta:
        return timedelta(hours=1)
