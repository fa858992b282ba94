"""
Aggregation Engine

DESIGN DECISION: Aggregation is PURE and TOTAL.
Every function here takes plain lists of records (query results
from the store), never the store itself, and never raises on
well-formed input: empty input gives zero totals and empty lists.

There is no caching. Screens recompute on every refresh.
"""

from calendar import monthrange
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from ledgerlight.models.ledger import (
    CategoryShare,
    DateRange,
    DayGroup,
    MonthSummary,
    Record,
    RecordType,
    Tag,
    TimeWindow,
    TrendBucket,
)

MONDAY = 0

WEEKDAY_ABBREVIATIONS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

DayLike = Union[date, datetime]


def _as_day(value: DayLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


# =============================================================================
# DATE RANGES
# =============================================================================

def date_range(
    window: TimeWindow,
    reference_date: DayLike,
    week_start: int = MONDAY,
) -> DateRange:
    """
    Inclusive calendar span of the window containing reference_date.

    week:  7 days starting on week_start (0 = Monday ... 6 = Sunday)
    month: first to last day of the month
    year:  January 1 to December 31
    """
    day = _as_day(reference_date)
    window = TimeWindow(window)

    if window is TimeWindow.WEEK:
        offset = (day.weekday() - week_start) % 7
        start = day - timedelta(days=offset)
        return DateRange(start=start, end=start + timedelta(days=6))

    if window is TimeWindow.MONTH:
        last_day = monthrange(day.year, day.month)[1]
        return DateRange(
            start=day.replace(day=1),
            end=day.replace(day=last_day),
        )

    return DateRange(start=date(day.year, 1, 1), end=date(day.year, 12, 31))


def records_in_range(
    records: Iterable[Record],
    span: DateRange,
    record_type: Optional[RecordType] = None,
) -> list[Record]:
    """Records whose entry date falls inside span, optionally of one type."""
    return [
        record for record in records
        if span.contains(record.entry_day)
        and (record_type is None or record.type == record_type)
    ]


# =============================================================================
# MONTHLY TOTALS
# =============================================================================

def _same_month(record: Record, day: date) -> bool:
    return record.date.year == day.year and record.date.month == day.month


def monthly_total(
    records: Iterable[Record],
    reference_date: DayLike,
    record_type: RecordType,
) -> Decimal:
    """Sum of amounts of one type in the calendar month of reference_date."""
    day = _as_day(reference_date)
    return sum(
        (record.amount for record in records
         if _same_month(record, day) and record.type == record_type),
        Decimal("0"),
    )


def monthly_records(records: Iterable[Record], reference_date: DayLike) -> list[Record]:
    """Records of the month, newest entry date first."""
    day = _as_day(reference_date)
    matching = [record for record in records if _same_month(record, day)]
    matching.sort(key=lambda r: r.date, reverse=True)
    return matching


def group_by_day(records: Iterable[Record]) -> list[DayGroup]:
    """Group records by entry day, newest day first."""
    groups: dict[date, list[Record]] = {}
    for record in records:
        groups.setdefault(record.entry_day, []).append(record)

    return [
        DayGroup(
            day=day,
            records=sorted(groups[day], key=lambda r: r.date, reverse=True),
        )
        for day in sorted(groups, reverse=True)
    ]


def month_summary(records: Iterable[Record], reference_date: DayLike) -> MonthSummary:
    """Totals, records and day sections for one month."""
    day = _as_day(reference_date)
    records = list(records)
    in_month = monthly_records(records, day)
    return MonthSummary(
        month=day.replace(day=1),
        expense=monthly_total(in_month, day, RecordType.EXPENSE),
        income=monthly_total(in_month, day, RecordType.INCOME),
        records=in_month,
        days=group_by_day(in_month),
    )


# =============================================================================
# CHART DATA
# =============================================================================

def category_breakdown(
    records: Iterable[Record],
    tags: Iterable[Tag] = (),
) -> list[CategoryShare]:
    """
    Donut chart slices: amount and share per tag.

    Untagged records are left out (there is no "unspecified" slice).
    Slices are sorted by descending amount; equal amounts keep the
    order in which their tag first appeared.
    """
    tags_by_id: dict[UUID, Tag] = {tag.id: tag for tag in tags}

    grouped: dict[UUID, Decimal] = {}
    for record in records:
        if record.tag_id is None:
            continue
        grouped[record.tag_id] = grouped.get(record.tag_id, Decimal("0")) + record.amount

    total = sum(grouped.values(), Decimal("0"))
    if total <= 0:
        return []

    shares = [
        CategoryShare(
            tag_id=tag_id,
            tag=tags_by_id.get(tag_id),
            amount=amount,
            percentage=min(100.0, float(amount / total * 100)),
        )
        for tag_id, amount in grouped.items()
    ]
    # sorted() is stable, so ties keep first-appearance order
    return sorted(shares, key=lambda share: share.amount, reverse=True)


def bucket_for(record_day: date, window: TimeWindow, week_start: int = MONDAY) -> tuple[str, int]:
    """(label, order) of the trend bucket a day belongs to."""
    window = TimeWindow(window)
    if window is TimeWindow.WEEK:
        weekday = record_day.weekday()
        return WEEKDAY_ABBREVIATIONS[weekday], (weekday - week_start) % 7
    if window is TimeWindow.MONTH:
        return str(record_day.day), record_day.day
    return MONTH_ABBREVIATIONS[record_day.month - 1], record_day.month


def bucketed_trend(
    records: Iterable[Record],
    window: TimeWindow,
    week_start: int = MONDAY,
) -> list[TrendBucket]:
    """
    Bar chart buckets with expense and income summed separately.

    week:  one bucket per weekday, in week order from week_start
    month: one bucket per day of month
    year:  one bucket per month
    Only buckets that have records are returned.
    """
    buckets: dict[int, TrendBucket] = {}
    for record in records:
        label, order = bucket_for(record.entry_day, window, week_start)
        bucket = buckets.get(order)
        if bucket is None:
            bucket = TrendBucket(label=label, order=order)
            buckets[order] = bucket
        if record.type == RecordType.EXPENSE:
            bucket.expense += record.amount
        else:
            bucket.income += record.amount

    return [buckets[order] for order in sorted(buckets)]
