import math
from typing import Any


def round_half_up(value: float) -> int:
    # builtin round() is banker's rounding, dashboards expect 2.5 -> 3
    return int(math.floor(value + 0.5))


def round_half_up_to(value: float, digits: int) -> float:
    """`round_half_up` at `digits` decimal places: 4.25 -> 4.3 for one digit."""
    factor = 10 ** digits
    return round_half_up(value * factor) / factor


def value_of(item: Any) -> Any:
    """Plain value of an enum member, anything else unchanged."""
    return getattr(item, "value", item)
