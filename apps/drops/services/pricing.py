"""
Discount curve service - maps accumulated reservation value to a discount.

A drop's discount climbs from the supplier list's ``min_discount`` to its
``max_discount`` as ``current_value`` approaches ``target_value``. The curve
shape is a policy input selected by ``DROPS['DISCOUNT_CURVE']``; every curve
is monotonic non-decreasing in the value and stays inside the range.

All arithmetic uses Decimal, percentages are kept to 2 decimal places and
money to cents.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from django.conf import settings

from apps.drops.exceptions import InvalidInputError

PERCENT = Decimal('0.01')
CENT = Decimal('0.01')


def _clamped_ratio(value: Decimal, target: Decimal) -> Decimal:
    if target <= 0:
        raise InvalidInputError("target_value must be positive")
    ratio = Decimal(value) / Decimal(target)
    return max(Decimal('0'), min(Decimal('1'), ratio))


def linear_curve(ratio: Decimal, min_discount: Decimal, max_discount: Decimal) -> Decimal:
    """Straight line from min_discount at 0% funded to max_discount at 100%."""
    return (min_discount + ratio * (max_discount - min_discount)).quantize(PERCENT, rounding=ROUND_DOWN)


def step_curve(ratio: Decimal, min_discount: Decimal, max_discount: Decimal) -> Decimal:
    """Linear curve floored to whole percents."""
    whole = linear_curve(ratio, min_discount, max_discount).to_integral_value(rounding=ROUND_DOWN)
    return max(min_discount, whole).quantize(PERCENT)


CURVES = {
    'linear': linear_curve,
    'step': step_curve,
}


def discount_for_value(
    value: Decimal,
    target_value: Decimal,
    min_discount: Decimal,
    max_discount: Decimal,
    curve: str = None,
) -> Decimal:
    """
    Compute the discount percentage reached at ``value``.

    Args:
        value: Accumulated reservation value at original prices
        target_value: Value at which max_discount is reached
        min_discount: Lower bound of the supplier list range
        max_discount: Upper bound of the supplier list range
        curve: Curve name; defaults to ``DROPS['DISCOUNT_CURVE']``

    Returns:
        Decimal percentage within [min_discount, max_discount]

    Raises:
        InvalidInputError: If the target is not positive, the range is
            inverted or the curve is unknown

    Example:
        >>> discount_for_value(Decimal('400'), Decimal('1000'), Decimal('10'), Decimal('30'))
        Decimal('18.00')
    """
    min_discount = Decimal(min_discount)
    max_discount = Decimal(max_discount)
    if min_discount > max_discount:
        raise InvalidInputError("min_discount cannot exceed max_discount")

    curve_name = curve or settings.DROPS['DISCOUNT_CURVE']
    try:
        curve_fn = CURVES[curve_name]
    except KeyError:
        raise InvalidInputError(f"Unknown discount curve '{curve_name}'")

    discount = curve_fn(_clamped_ratio(value, target_value), min_discount, max_discount)
    return max(min_discount, min(max_discount, discount))


def discount_for_drop(drop, value: Decimal) -> Decimal:
    """Curve value for ``drop`` at ``value`` using its supplier list range."""
    supplier_list = drop.supplier_list
    return discount_for_value(
        value,
        drop.target_value,
        supplier_list.min_discount,
        supplier_list.max_discount,
    )


def final_price_for(original_price: Decimal, discount_percentage: Decimal) -> Decimal:
    """
    Price charged at capture: ``original × (1 − discount/100)`` in cents.

    Rounded half-up to the cent, then capped at the original price so the
    capture can never exceed the authorized amount.
    """
    original_price = Decimal(original_price)
    price = original_price * (Decimal('1') - Decimal(discount_percentage) / Decimal('100'))
    return min(original_price, price.quantize(CENT, rounding=ROUND_HALF_UP))
