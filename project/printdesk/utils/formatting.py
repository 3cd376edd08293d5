# printdesk/utils/formatting.py

from datetime import date, datetime
from typing import Optional, Union

from printdesk.config import settings

# Locales that group the way en-IN does: 1,50,000 / 12,34,567
LAKH_LOCALES = ("en", "ta", "hi")


def group_digits(digits: str, locale: str) -> str:
    """'150000' -> '1,50,000' for Indian locales, '150,000' otherwise."""
    language, _, region = locale.replace("_", "-").partition("-")
    indian = language.lower() in LAKH_LOCALES and region.upper() in ("", "IN")

    head, tail = digits[:-3], digits[-3:]
    if not head:
        return tail

    step = 2 if indian else 3
    groups = []
    while head:
        groups.insert(0, head[-step:])
        head = head[:-step]
    return ",".join(groups + [tail])


def format_amount(value: Union[int, float, None], locale: str = settings.DISPLAY_LOCALE) -> Optional[str]:
    """
    Groups the integer part for the display locale: "en"/"ta" group in
    lakhs (150000 -> "1,50,000"), "en-US" and other locales in thousands.
    Whole amounts drop the decimals, others keep two. None stays None.
    """
    if value is None:
        return None
    value = round(float(value), 2)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")

    text = sign + group_digits(whole, locale)
    if fraction != "00":
        text += "." + fraction
    return text


def format_currency(
    value: Union[int, float, None],
    locale: str = settings.DISPLAY_LOCALE,
    symbol: str = settings.CURRENCY_SYMBOL,
) -> Optional[str]:
    amount = format_amount(value, locale)
    return None if amount is None else f"{symbol}{amount}"


def format_date(value: Union[date, datetime, str, None]) -> Optional[str]:
    """DD/MM/YYYY; accepts date, datetime or an ISO string. None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime("%d/%m/%Y")
