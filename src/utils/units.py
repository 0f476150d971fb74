from decimal import Decimal


def to_base_units(amount: Decimal, decimals: int = 18) -> int:
    """Convert a display amount (e.g. 1.5 WYZ) into integer base units."""
    sign, digits, exponent = amount.as_tuple()
    if not isinstance(exponent, int):
        raise ValueError(f"{amount} is not a finite amount")
    shift = exponent + decimals
    coefficient = int("".join(map(str, digits)) or "0")
    if shift >= 0:
        units = coefficient * 10**shift
    else:
        units, remainder = divmod(coefficient, 10**-shift)
        if remainder:
            raise ValueError(f"{amount} has more than {decimals} fractional digits")
    return -units if sign else units


def from_base_units(value: int, decimals: int = 18) -> Decimal:
    # Built from the digit tuple so no context rounding applies.
    sign, digits, exponent = Decimal(value).as_tuple()
    return Decimal((sign, digits, exponent - decimals))
