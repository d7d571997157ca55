from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def commission_for(amount, rate) -> Decimal:
    """Commission on ``amount`` at ``rate`` percent, rounded half-up to the cent."""
    amount = Decimal(str(amount))
    rate = Decimal(str(rate))
    if amount < 0:
        raise ValueError("Sale amount cannot be negative")
    if rate < 0 or rate > 100:
        raise ValueError("Commission rate must be between 0 and 100")
    return (amount * rate / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
