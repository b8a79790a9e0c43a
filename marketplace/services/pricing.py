from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def subtotal(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    """Sum of unit price times quantity over (price, quantity) pairs."""
    return to_money(sum((Decimal(price) * quantity for price, quantity in lines), Decimal("0")))


def tax_for(amount: Decimal, tax_rate: Decimal) -> Decimal:
    return to_money(Decimal(amount) * Decimal(tax_rate))


def total_with_tax(amount: Decimal, tax_rate: Decimal) -> Decimal:
    amount = to_money(amount)
    return to_money(amount + tax_for(amount, tax_rate))
