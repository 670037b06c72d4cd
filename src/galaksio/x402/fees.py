"""
Relay fee calculation

Formula: max(3% x target_amount, 0.002), amounts in USD.
"""

from decimal import Decimal
from typing import TypeVar

RELAY_FEE_RATE = Decimal("0.03")
RELAY_FEE_MINIMUM = Decimal("0.002")

Amount = TypeVar("Amount", float, Decimal)


def relay_fee(target_amount: Amount) -> Amount:
    """Relay markup for a target amount; Decimal in gives Decimal out"""
    if target_amount < 0:
        raise ValueError(f"Amount must be non-negative: {target_amount}")
    if isinstance(target_amount, Decimal):
        return max(target_amount * RELAY_FEE_RATE, RELAY_FEE_MINIMUM)
    return max(target_amount * float(RELAY_FEE_RATE), float(RELAY_FEE_MINIMUM))


def total_amount(target_amount: Amount) -> Amount:
    """Target amount plus relay fee"""
    return target_amount + relay_fee(target_amount)
