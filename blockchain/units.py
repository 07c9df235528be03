"""
Conversion between token amounts (Decimal) and ledger base units (int).
"""
from decimal import ROUND_DOWN, Context, Decimal, localcontext

TOKEN_DECIMALS = 18
BASE_UNIT = Decimal(10) ** TOKEN_DECIMALS
TOKEN_QUANTUM = Decimal(1).scaleb(-TOKEN_DECIMALS)

# Wide enough that no token arithmetic here is ever rounded by the context
PRECISE_CONTEXT = Context(prec=100, rounding=ROUND_DOWN)


def to_token_units(amount) -> int:
    """Convert a token amount into integer base units, truncating toward zero."""
    if amount is None:
        return 0
    with localcontext(PRECISE_CONTEXT):
        return int((Decimal(amount) * BASE_UNIT).to_integral_value(rounding=ROUND_DOWN))


def from_token_units(raw) -> Decimal:
    """Convert integer base units back into a token amount."""
    with localcontext(PRECISE_CONTEXT):
        return (Decimal(int(raw)) / BASE_UNIT).quantize(TOKEN_QUANTUM)
