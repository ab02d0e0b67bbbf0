from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")

# Balances within this band of zero are rounding noise.
DEAD_ZONE = Decimal("0.009")

# Allowed gap between a split's inputs and its target sum.
SPLIT_TOLERANCE = Decimal("0.005")


def qround(d) -> Decimal:
    if not isinstance(d, Decimal):
        d = Decimal(str(d))
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)
