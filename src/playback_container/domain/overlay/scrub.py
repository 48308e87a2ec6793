"""
Hold-to-scrub math and skip-indicator formatting.

Pure functions, no state. The container calls these once per acceleration
tick and once per discrete skip.
"""

from typing import Optional

from .models import ScrubDirection

# Defaults match the [scrub] config section
MAX_ACCELERATION = 10.0
ACCELERATION_RAMP_RATE = 0.5

MINUS_SIGN = "−"


def acceleration_factor(
    elapsed: float,
    max_acceleration: float = MAX_ACCELERATION,
    ramp_rate: float = ACCELERATION_RAMP_RATE,
) -> float:
    """Speed multiplier after ``elapsed`` seconds of continuous hold.

    Linear ramp from 1x at t=0, capped at ``max_acceleration``. With the
    defaults that is ``min(10.0, 1.0 + elapsed / 2.0)``, reaching 10x at 18s.
    """
    return min(max_acceleration, 1.0 + max(0.0, elapsed) * ramp_rate)


def clamp_position(position: float, runtime: Optional[float]) -> float:
    """Clamp a position to [0, runtime]; only the lower bound when runtime is unknown."""
    if runtime is None:
        return max(0.0, position)
    return max(0.0, min(runtime, position))


def next_scrub_position(
    current: float,
    direction: ScrubDirection,
    base_skip_amount: float,
    factor: float,
    runtime: Optional[float],
) -> float:
    """Position after one acceleration tick."""
    return clamp_position(current + direction.sign * base_skip_amount * factor, runtime)


def format_skip_duration(seconds: float) -> str:
    """Format a skip amount as ``M:SS``, or ``:SS`` under one minute."""
    total_seconds = int(abs(seconds))
    minutes = total_seconds // 60
    secs = total_seconds % 60
    if minutes > 0:
        return f"{minutes}:{secs:02d}"
    return f":{secs:02d}"


def format_skip_indicator(direction: ScrubDirection, seconds: float) -> str:
    """Signed indicator text, e.g. ``+:15`` or ``−1:30``."""
    sign = "+" if direction is ScrubDirection.FORWARD else MINUS_SIGN
    return f"{sign}{format_skip_duration(seconds)}"


def format_scrub_delta(
    scrubbed: float, committed: float, direction: ScrubDirection
) -> str:
    """Indicator text for the distance between scrubbed and playing position.

    The sign follows the actual offset; at zero offset it follows the
    scrub direction.
    """
    delta = scrubbed - committed
    if delta > 0:
        shown = ScrubDirection.FORWARD
    elif delta < 0:
        shown = ScrubDirection.BACKWARD
    else:
        shown = direction
    return format_skip_indicator(shown, delta)
