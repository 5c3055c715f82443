"""Period-over-period growth.

previous == 0 is not treated as undefined: growth is 100 when anything
appeared and 0 when nothing did. Historical dashboards were computed this
way and stay comparable only if it is kept exactly.
"""

from decimal import ROUND_HALF_UP, Decimal

_ONE_PLACE = Decimal("0.1")


def growth_percent(current: Decimal | int | float, previous: Decimal | int | float) -> float:
    cur = Decimal(str(current))
    prev = Decimal(str(previous))
    if prev == 0:
        return 100.0 if cur > 0 else 0.0
    pct = (cur - prev) / prev * 100
    return float(pct.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP))


def churn_rate(canceled: int, active_started: int) -> float:
    """Canceled share of subscriptions touched in a window, in percent (2 places)."""
    touched = canceled + active_started
    if touched <= 0:
        return 0.0
    pct = Decimal(canceled) / Decimal(touched) * 100
    return float(pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
