"""Keypad calculator package."""

from ledgerlight.calculator.keypad import (
    AmountCalculator,
    InvalidAmountError,
    normalize_amount,
)

__all__ = ["AmountCalculator", "InvalidAmountError", "normalize_amount"]
