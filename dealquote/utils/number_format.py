"""Decimal parsing and rounding utilities for monetary input."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from dealquote.exceptions import ValidationError

CENT = Decimal('0.01')
PERCENT_STEP = Decimal('0.0001')
HUNDRED = Decimal('100')

# Largest values the Numeric(14, 2) money and Numeric(9, 4) percentage columns hold
MAX_MONEY = Decimal('999999999999.99')
MAX_PERCENTAGE = Decimal('99999.9999')
MAX_INT32 = 2 ** 31 - 1


def quantize_money(value: Decimal) -> Decimal:
    """Round a Decimal to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_decimal(value, field: str, default: Decimal = Decimal('0')) -> Decimal:
    """
    Parse a numeric input value to Decimal.

    Floats are converted through ``str`` so 0.1 stays 0.1. ``None`` yields
    ``default``. Booleans are rejected even though they are ints.

    Raises:
        ValidationError: if the value is not a finite number.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(field, 'must be a number')
    if isinstance(value, Decimal):
        number = value
    else:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return default
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(field, 'must be a number')
    if not number.is_finite():
        raise ValidationError(field, 'must be a finite number')
    return number


def parse_non_negative_decimal(value, field: str) -> Decimal:
    number = parse_decimal(value, field)
    if number < 0:
        raise ValidationError(field, 'must not be negative')
    return number


def _exact(number: Decimal, step: Decimal, field: str) -> Decimal:
    """Return ``number`` at the scale of ``step``; more decimals than that is an error, never rounded."""
    scaled = number.quantize(step)
    if scaled != number:
        places = -step.as_tuple().exponent
        raise ValidationError(field, f'must have at most {places} decimal places')
    return scaled


def parse_money(value, field: str) -> Decimal:
    """
    Parse a non-negative amount with at most two decimals.

    The result is exactly what a Numeric(14, 2) column stores, so a value
    read back from the database parses to the same Decimal.
    """
    number = parse_non_negative_decimal(value, field)
    if number > MAX_MONEY:
        raise ValidationError(field, f'must not exceed {MAX_MONEY}')
    return _exact(number, CENT, field)


def parse_percentage(value, field: str, bounded: bool = True) -> Decimal:
    """
    Parse a percentage stored as a plain number (20 means 20%).

    At most four decimals. Bounded percentages lie in [0, 100]; unbounded
    ones (markup) stop at ``MAX_PERCENTAGE``.
    """
    number = parse_non_negative_decimal(value, field)
    if bounded and number > HUNDRED:
        raise ValidationError(field, 'must be between 0 and 100')
    if number > MAX_PERCENTAGE:
        raise ValidationError(field, f'must not exceed {MAX_PERCENTAGE}')
    return _exact(number, PERCENT_STEP, field)


def parse_non_negative_int(value, field: str, maximum: int = MAX_INT32) -> int:
    """
    Parse a whole, non-negative count of days or installments.

    Accepts ints, integral Decimals/floats and numeric strings.
    """
    number = parse_decimal(value, field)
    if number != number.to_integral_value():
        raise ValidationError(field, 'must be a whole number')
    if number < 0:
        raise ValidationError(field, 'must not be negative')
    if number > maximum:
        raise ValidationError(field, f'must not exceed {maximum}')
    return int(number)
