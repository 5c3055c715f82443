"""Reporting periods: a calendar month or a calendar year, in UTC.

A period's figures are taken at min(end, now); its comparison baseline is
the value at the period's start (equivalently, the end of previous()).
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from src.wm_common.enums import PeriodKind
from src.wm_common.errors import InvalidPeriodError

MIN_YEAR = 2000
MAX_YEAR = 2100


@dataclass(frozen=True)
class Period:
    kind: PeriodKind
    year: int
    month: int | None = None

    def __post_init__(self) -> None:
        if self.kind == PeriodKind.MONTH:
            if self.month is None or not 1 <= self.month <= 12:
                raise InvalidPeriodError("month must be between 1 and 12")
        elif self.month is not None:
            raise InvalidPeriodError("a year period has no month")

    @classmethod
    def parse(
        cls,
        year: int | None,
        month: int | None,
        now: datetime,
        default_kind: PeriodKind = PeriodKind.MONTH,
    ) -> "Period":
        """Build a period from query parameters.

        No parameters means the current month (or year, per default_kind).
        A year without a month is a whole year. Years outside
        MIN_YEAR..MAX_YEAR and periods starting after *now* are rejected.
        """
        if year is not None and not MIN_YEAR <= year <= MAX_YEAR:
            raise InvalidPeriodError(f"year must be between {MIN_YEAR} and {MAX_YEAR}")
        if month is not None:
            period = cls(PeriodKind.MONTH, year if year is not None else now.year, month)
        elif year is not None:
            period = cls(PeriodKind.YEAR, year)
        elif default_kind == PeriodKind.YEAR:
            period = cls(PeriodKind.YEAR, now.year)
        else:
            period = cls(PeriodKind.MONTH, now.year, now.month)
        if period.start > now:
            raise InvalidPeriodError(f"{period.bucket} is in the future")
        return period

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month or 1, 1, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime:
        """Exclusive upper bound: the start of the next period."""
        if self.kind == PeriodKind.YEAR or self.month == 12:
            return datetime(self.year + 1, 1, 1, tzinfo=timezone.utc)
        return datetime(self.year, self.month + 1, 1, tzinfo=timezone.utc)  # type: ignore[operator]

    @property
    def bucket(self) -> str:
        if self.kind == PeriodKind.YEAR:
            return f"{self.year}"
        return f"{self.year}-{self.month:02d}"

    def previous(self) -> "Period":
        """The period just before; may fall before MIN_YEAR (a baseline with no data)."""
        if self.kind == PeriodKind.YEAR:
            return Period(PeriodKind.YEAR, self.year - 1)
        if self.month == 1:
            return Period(PeriodKind.MONTH, self.year - 1, 12)
        return Period(PeriodKind.MONTH, self.year, self.month - 1)  # type: ignore[operator]

    def as_of(self, now: datetime) -> datetime:
        return min(self.end, now)

    def is_closed(self, now: datetime) -> bool:
        return self.end <= now
