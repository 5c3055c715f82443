"""Group investment rows by asset type."""

from collections.abc import Iterable

from src.wm_common.money import quantize, scale_units
from src.wm_snapshot.domain.models import BreakdownItem, TypeGroup

OTHER = "other"
_UNKNOWN_TYPES = frozenset({"", "unknown", "none", "null"})


def normalise_type(raw: str | None) -> str:
    if raw is None:
        return OTHER
    value = str(raw).strip()
    if value.lower() in _UNKNOWN_TYPES:
        return OTHER
    return value


def group_breakdown(groups: Iterable[TypeGroup], scale: int) -> list[BreakdownItem]:
    """Merge raw GROUP BY rows into {type, count, total}, largest total first.

    Several raw types (NULL, '', 'unknown') collapse into "other", so rows
    are merged again after normalisation.
    """
    merged: dict[str, BreakdownItem] = {}
    for group in groups:
        key = normalise_type(group.type)
        item = merged.setdefault(key, BreakdownItem(type=key))
        item.count += group.count
        item.total = quantize(item.total + scale_units(group.raw_total, scale))
    return sorted(merged.values(), key=lambda i: (-i.total, i.type))
