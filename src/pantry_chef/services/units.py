"""Unit-aware quantity formatting."""

_TWO_DECIMAL_UNITS = frozenset({"千克", "升"})


def format_quantity(quantity: float, unit: str) -> str:
    """Render a quantity with the precision its unit calls for.

    Kilograms and litres keep two decimals. Count units, grams, millilitres
    and any unit missing from the table render as whole numbers.
    """
    if unit in _TWO_DECIMAL_UNITS:
        return f"{quantity:.2f}"
    return f"{quantity:.0f}"
