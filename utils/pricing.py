"""Price parsing and derivation of catalog prices"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from scrapers.error_handler import StepResult

COMPARE_AT_MODES = ('none', 'multiplier', 'displayed')

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')

# First number in the text: "$1,299.99", "AED 129", "129.99 - 159.99"
PRICE_PATTERN = re.compile(r'\d[\d,]*(?:\.\d+)?')


@dataclass(frozen=True)
class PriceFields:
    cost_per_item: str
    variant_price: str
    compare_at_price: str = ''


def parse_price(price_text):
    """
    Extract numeric price from text

    Args:
        price_text: Price text (e.g., "$129.99" or "USD 1,299.00")

    Returns:
        Decimal or None when the text holds no number
    """
    if not price_text:
        return None

    match = PRICE_PATTERN.search(str(price_text))
    if not match:
        return None

    try:
        return Decimal(match.group(0).replace(',', ''))
    except InvalidOperation:
        return None


def _money(value):
    return str(value.quantize(CENTS, rounding=ROUND_HALF_UP))


def derive_prices(cost, pricing):
    """
    Catalog prices from the displayed cost.

    variant price = cost x variant_price_multiplier, rounded to cents.
    compare-at price depends on compare_at_mode:
      none       -> blank
      multiplier -> variant price x compare_at_multiplier
      displayed  -> the displayed cost itself
    """
    mode = pricing.get('compare_at_mode', 'none')
    if mode not in COMPARE_AT_MODES:
        raise ValueError(f"Unknown compare_at_mode '{mode}', expected one of {COMPARE_AT_MODES}")

    multiplier = Decimal(str(pricing.get('variant_price_multiplier', '1')))
    variant_price = (cost * multiplier).quantize(CENTS, rounding=ROUND_HALF_UP)

    compare_at = ''
    if mode == 'multiplier':
        compare_multiplier = Decimal(str(pricing.get('compare_at_multiplier', '1')))
        compare_at = _money(variant_price * compare_multiplier)
    elif mode == 'displayed':
        compare_at = _money(cost)

    return PriceFields(
        cost_per_item=_money(cost),
        variant_price=_money(variant_price),
        compare_at_price=compare_at,
    )


def prices_from_text(price_text, pricing):
    """Derived prices for raw price text; unparseable text gives a zero cost, degraded"""
    cost = parse_price(price_text)
    if cost is None:
        return StepResult.degraded(
            derive_prices(ZERO, pricing),
            f"Could not parse price from {price_text!r}, using 0",
        )
    return StepResult(derive_prices(cost, pricing))
