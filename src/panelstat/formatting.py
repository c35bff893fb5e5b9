"""Unit-aware formatting shared by every indicator."""

import math

# A value is promoted to the next unit once it exceeds this, while each
# unit is still 1024 of the previous one.
SCALE_THRESHOLD = 1000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards positive infinity."""
    return math.floor(value + 0.5)


def format_bytes(size: float) -> str:
    """
    Format a byte count as KB, MB or GB.

    KB and MB are rounded to whole numbers, GB keeps two decimals. Negative
    values (counter resets) are formatted the same way.
    """
    value = size / 1024
    for unit in ["KB", "MB"]:
        if abs(value) <= SCALE_THRESHOLD:
            return f"{round_half_up(value)}{unit}"
        value = value / 1024
    return f"{value:.2f}GB"


def format_percent(value: float) -> str:
    """Format a percentage with one decimal, dropping it at the top of the scale."""
    rounded = round(value, 1)
    if rounded > 99.99:
        return f"{round_half_up(value)}%"
    return f"{rounded:.1f}%"


def format_temperature(celsius: float) -> str:
    """Format a temperature as whole degrees Celsius."""
    return f"{round_half_up(celsius)}°C"
