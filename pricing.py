"""
Price text normalizer.

Turns whatever a product page shows as its price (``"$12.34"``,
``"£1,290"``, ``"RRP: RUB 166,777 (-50%) RUB 83,389"``) into an integer
amount of minor currency units plus an ISO currency code.

All functions are pure and total: bad input yields ``None``, never an
exception.

>>> parse("$12.34")
PriceInfo(amount_minor_units=1234, currency_code='USD')
>>> parse("£1,290")
PriceInfo(amount_minor_units=129000, currency_code='GBP')
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from config.settings import DEFAULT_CURRENCY
from models import PriceInfo

# =====================================================================
# 1. Numeric tokens
# =====================================================================

# A run of digits with inline "." / "," separators, optionally grouped
# by thin/regular spaces in blocks of three ("1 290,50").
_RE_NUMBER = re.compile(r"\d[\d.,]*(?:[ \u00a0\u202f]\d{3}(?!\d)[\d.,]*)*")

_RE_PERCENT_AFTER = re.compile(r"\s*%")

# Keywords that introduce the currently payable price.
_RE_SALE_MARKER = re.compile(r"\b(?:sale|discounted|final|now|special)\b", re.IGNORECASE)

# "(-50%)" style markers; the price that follows is the discounted one.
_RE_PERCENT_MARKER = re.compile(r"\(\s*-?\s*\d+(?:[.,]\d+)?\s*%\s*\)")

_RE_SPACES = re.compile(r"\s")


def _numeric_tokens(text: str) -> list[re.Match[str]]:
    """Numbers in *text*, excluding percentages."""
    tokens = []
    for m in _RE_NUMBER.finditer(text):
        if _RE_PERCENT_AFTER.match(text, m.end()):
            continue
        tokens.append(m)
    return tokens


def select_price_token(text: str) -> str | None:
    """Pick the numeric token that represents the payable price.

    Order: first number after a sale keyword, else first number after a
    ``(-N%)`` marker, else the last number in the string.
    """
    tokens = _numeric_tokens(text)
    if not tokens:
        return None

    for marker in (_RE_SALE_MARKER, _RE_PERCENT_MARKER):
        m = marker.search(text)
        if not m:
            continue
        for token in tokens:
            if token.start() >= m.end():
                return token.group()

    return tokens[-1].group()


def normalize_number(token: str) -> Decimal | None:
    """Resolve decimal vs thousands separators and return the value.

    With both ``.`` and ``,`` present the right-most one is the decimal
    point.  With only one kind present it is a decimal point when it
    occurs once and is followed by one or two digits, otherwise it
    groups thousands.
    """
    token = _RE_SPACES.sub("", token).strip(".,")
    if not token:
        return None

    has_comma = "," in token
    has_dot = "." in token
    if has_comma and has_dot:
        if token.rfind(",") > token.rfind("."):
            token = token.replace(".", "").replace(",", ".")
        else:
            token = token.replace(",", "")
    elif has_comma or has_dot:
        sep = "," if has_comma else "."
        parts = token.split(sep)
        if len(parts) == 2 and 1 <= len(parts[1]) <= 2:
            token = token.replace(sep, ".")
        else:
            token = token.replace(sep, "")

    try:
        value = Decimal(token)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def to_minor_units(value: Decimal, *, minor_units: bool = False) -> int:
    """Round *value* to whole cents (or round it as-is for cent sources)."""
    with localcontext() as ctx:
        # Wide enough that scaling and rounding stay exact for any token.
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + 4, value.adjusted() + 6)
        scaled = value if minor_units else value.scaleb(2)
        return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =====================================================================
# 2. Currency detection
# =====================================================================

# Checked in order; "$"-prefixed regional codes come before bare "$".
_CURRENCY_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?<![A-Za-z])HK\$|\bHKD\b"), "HKD"),
    (re.compile(r"(?<![A-Za-z])AU?\$|\bAUD\b"), "AUD"),
    (re.compile(r"(?<![A-Za-z])CA?\$|\bCAD\b"), "CAD"),
    (re.compile(r"(?<![A-Za-z])NZ\$|\bNZD\b"), "NZD"),
    (re.compile(r"(?<![A-Za-z])S\$|\bSGD\b"), "SGD"),
    (re.compile(r"(?<![A-Za-z])US\$|\bUSD\b"), "USD"),
    (re.compile(r"CN¥|\bCNY\b|\bRMB\b|元"), "CNY"),
    (re.compile(r"¥|円|\bJPY\b"), "JPY"),
    (re.compile(r"£|\bGBP\b"), "GBP"),
    (re.compile(r"€|\bEUR\b"), "EUR"),
    (re.compile(r"₽|\bRUB\b|руб", re.IGNORECASE), "RUB"),
    (re.compile(r"₹|\bINR\b"), "INR"),
    (re.compile(r"\bCHF\b"), "CHF"),
    (re.compile(r"\$"), "USD"),
]

# Bare symbols as some schemas report them in ``priceCurrency``.
_SYMBOL_TO_CODE = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "¥": "JPY",
    "₽": "RUB",
    "₹": "INR",
}


def detect_currency(text: str, default: str | None = DEFAULT_CURRENCY) -> str | None:
    """Return the ISO code signalled by *text*, else *default*."""
    for pattern, code in _CURRENCY_PATTERNS:
        if pattern.search(text):
            return code
    return default


def currency_code(value: Any, default: str = DEFAULT_CURRENCY) -> str:
    """Normalize a currency field from structured data (code or symbol)."""
    if not isinstance(value, str) or not value.strip():
        return default
    value = value.strip()
    if value in _SYMBOL_TO_CODE:
        return _SYMBOL_TO_CODE[value]
    if re.fullmatch(r"[A-Za-z]{3}", value):
        return value.upper()
    return detect_currency(value, default) or default


# =====================================================================
# 3. Public entry points
# =====================================================================


def parse(price_text: Any, default_currency: str = DEFAULT_CURRENCY) -> PriceInfo | None:
    """Parse display price text into :class:`PriceInfo`.

    >>> parse("RRP: RUB 166,777 (-50%) RUB 83,389")
    PriceInfo(amount_minor_units=8338900, currency_code='RUB')
    >>> parse("") is None
    True
    """
    if not isinstance(price_text, str) or not price_text.strip():
        return None

    token = select_price_token(price_text)
    if token is None:
        return None
    value = normalize_number(token)
    if value is None:
        return None

    amount = to_minor_units(value)
    currency = detect_currency(price_text, default_currency) or default_currency
    return PriceInfo(amount, currency)


def from_amount(amount: Any, currency: Any = None, *, minor_units: bool = False) -> PriceInfo | None:
    """Build :class:`PriceInfo` from a structured-data amount.

    *amount* may be a number or a numeric string such as ``"45.50"``.
    Set *minor_units* when the source already counts cents (Shopify).
    """
    if isinstance(amount, bool) or amount is None:
        return None
    if isinstance(amount, (int, float)):
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            return None
    elif isinstance(amount, str):
        token = select_price_token(amount)
        value = normalize_number(token) if token else None
    else:
        return None
    if value is None or not value.is_finite():
        return None

    amount = to_minor_units(value, minor_units=minor_units)
    return PriceInfo(amount, currency_code(currency))
