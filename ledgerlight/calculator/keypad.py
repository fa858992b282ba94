"""
Numeric Keypad Calculator

Turns keypad presses into a decimal amount string.

DESIGN DECISION: The keypad holds at most ONE pending operation.
Pressing "+" or "-" parks the current buffer as the left operand,
"=" folds the right operand in. There is no operator precedence
and no chaining: pressing an operator again with a non-empty buffer
replaces the pending expression.

Amounts are never negative: subtraction is clamped at zero.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

MAX_INTEGER_DIGITS = 10
MAX_FRACTION_DIGITS = 2
OPERATORS = ("+", "-")

BACKSPACE_KEY = "⌫"
EVALUATE_KEY = "="


class InvalidAmountError(ValueError):
    """The keypad buffer is not a positive amount."""
    pass


def normalize_amount(value: Decimal) -> str:
    """
    Format to 2 decimal places, then strip trailing zeros and
    a trailing lone decimal point ("12.50" -> "12.5", "3.00" -> "3").
    """
    text = f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}"
    while "." in text and text.endswith(("0", ".")):
        text = text[:-1]
    return text


class AmountCalculator:
    """
    Keypad state machine.

    State:
        current_amount: the buffer being typed
        pending_expression: left operand plus operator, e.g. "12.5+"
        is_pending: True while an operation awaits its right operand
    """

    def __init__(self) -> None:
        self.current_amount = ""
        self.pending_expression = ""
        self.is_pending = False

    # ------------------------------------------------------------------
    # Keystrokes
    # ------------------------------------------------------------------

    def append_digit(self, digit: str) -> bool:
        """
        Append one digit to the buffer.

        Returns False when the keystroke is rejected: ten integer
        digits are already typed, or two fraction digits are.
        """
        if len(digit) != 1 or not digit.isdigit():
            raise ValueError(f"Not a digit: {digit!r}")

        if "." in self.current_amount:
            fraction = self.current_amount.split(".", 1)[1]
            if len(fraction) >= MAX_FRACTION_DIGITS:
                return False
        elif len(self.current_amount) >= MAX_INTEGER_DIGITS:
            return False

        self.current_amount += digit
        return True

    def append_decimal_point(self) -> bool:
        if "." in self.current_amount:
            return False
        self.current_amount = self.current_amount + "." if self.current_amount else "0."
        return True

    def backspace(self) -> bool:
        """Remove the last buffer character (and the last expression character while pending)."""
        if not self.current_amount:
            return False

        self.current_amount = self.current_amount[:-1]
        if self.is_pending and self.pending_expression:
            self.pending_expression = self.pending_expression[:-1]
            if not self.pending_expression:
                self.is_pending = False
        return True

    def apply_operator(self, operator: str) -> bool:
        if operator not in OPERATORS:
            raise ValueError(f"Unsupported operator: {operator!r}")
        # Empty buffer: keep whatever is already pending
        if not self.current_amount:
            return False

        self.pending_expression = self.current_amount + operator
        self.current_amount = ""
        self.is_pending = True
        return True

    def evaluate(self) -> bool:
        """
        Fold the buffer into the pending expression.

        Returns True when a result replaced the buffer.
        """
        if not (self.is_pending and self.pending_expression and self.current_amount):
            return False

        operator = self.pending_expression[-1]
        computed = False
        if operator in OPERATORS:
            left = _parse_decimal(self.pending_expression[:-1])
            right = _parse_decimal(self.current_amount)
            if left is not None and right is not None:
                if operator == "+":
                    result = left + right
                else:
                    result = max(Decimal("0"), left - right)
                self.current_amount = normalize_amount(result)
                computed = True

        self.pending_expression = ""
        self.is_pending = False
        return computed

    def press(self, key: str) -> bool:
        """Dispatch a single keypad key."""
        if key.isdigit() and len(key) == 1:
            return self.append_digit(key)
        if key == ".":
            return self.append_decimal_point()
        if key in OPERATORS:
            return self.apply_operator(key)
        if key == EVALUATE_KEY:
            return self.evaluate()
        if key == BACKSPACE_KEY:
            return self.backspace()
        raise ValueError(f"Unknown keypad key: {key!r}")

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def commit(self) -> Decimal:
        """
        Return the buffer as an amount.

        Raises:
            InvalidAmountError: if the buffer is empty, unparseable
            or not strictly greater than zero.
        """
        amount = _parse_decimal(self.current_amount)
        if amount is None or amount <= 0:
            raise InvalidAmountError(
                f"Amount must be a number greater than zero, got {self.current_amount!r}"
            )
        return amount

    @property
    def can_commit(self) -> bool:
        amount = _parse_decimal(self.current_amount)
        return amount is not None and amount > 0

    @property
    def display(self) -> str:
        """What the amount display shows: the pending expression, then the buffer."""
        return f"{self.pending_expression}{self.current_amount}"

    def reset(self) -> None:
        self.current_amount = ""
        self.pending_expression = ""
        self.is_pending = False


def _parse_decimal(text: str) -> Optional[Decimal]:
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value
