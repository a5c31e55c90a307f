"""Domain model for consumption analysis reports."""

from dataclasses import dataclass
from datetime import date

from expiry_tracker.domain.products import Status


@dataclass(frozen=True)
class ProductAnalysis:
    """Read-only consumption report for a single product.

    Fields that cannot be computed are ``None`` and the reason is listed in
    ``warnings``.
    """

    remaining_quantity: float
    percent_consumed: float
    percent_remaining: float
    days_until_expiration: int | None
    months_until_expiration: int | None
    years_until_expiration: int | None
    is_expired: bool
    days_since_purchase: int | None
    current_avg_daily_consumption: float | None
    recommended_daily_to_finish: float | None
    recommended_monthly_to_finish: float | None
    estimated_finish_date: date | None
    estimated_days_to_finish: int | None
    status_suggestion: Status
    summary: str
    warnings: list[str]
