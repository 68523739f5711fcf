"""Display formatting for account ids and money amounts"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from billpay_gateway.domain.models import DECIMAL_PLACES

_NON_DIGITS = re.compile(r"\D")
_CENT = Decimal(1).scaleb(-DECIMAL_PLACES)


def format_account_id(account_id: str) -> str:
    """
    Group the digits of an account id for display.

    Non-digits are dropped, then digits are split 3-3-3 with any remainder
    in a fourth block:
        "123"          -> "123"
        "12345"        -> "123-45"
        "12345678901"  -> "123-456-789-01"
    """
    digits = _NON_DIGITS.sub("", account_id)
    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"{digits[:3]}-{digits[3:]}"
    if len(digits) <= 9:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    return f"{digits[:3]}-{digits[3:6]}-{digits[6:9]}-{digits[9:]}"


def format_currency(amount: Union[Decimal, int, float]) -> str:
    """Render an amount as USD with thousands separators, e.g. -$1,234.50"""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    rounded = value.quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.{DECIMAL_PLACES}f}"
