"""Aggregation engine package."""

from ledgerlight.aggregation.engine import (
    MONDAY,
    bucket_for,
    bucketed_trend,
    category_breakdown,
    date_range,
    group_by_day,
    month_summary,
    monthly_records,
    monthly_total,
    records_in_range,
)

__all__ = [
    "MONDAY",
    "bucket_for",
    "bucketed_trend",
    "category_breakdown",
    "date_range",
    "group_by_day",
    "month_summary",
    "monthly_records",
    "monthly_total",
    "records_in_range",
]
