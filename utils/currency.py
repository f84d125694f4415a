# utils/currency.py
# Shillings are shown in whole units: "UGX 1,250,000"
import math


def _to_number(amount):
    if amount is None or amount == "":
        return 0.0
    value = float(amount)
    # inf/nan have no printable amount
    return value if math.isfinite(value) else 0.0


def format_number(amount) -> str:
    value = _to_number(amount)
    if value == int(value):
        return f"{int(value):,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_currency(amount, currency="UGX") -> str:
    value = round(_to_number(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{currency} {abs(int(value)):,}"
