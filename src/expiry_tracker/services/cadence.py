"""Reminder cadence heuristic."""

from datetime import date

from expiry_tracker.domain.products import NotificationFrequency

LOW_REMAINING_QUANTITY = 2
DAILY_WINDOW_DAYS = 7
WEEKLY_WINDOW_DAYS = 30


def calculate_cadence(
    purchase_date: date | None,
    expiration_date: date | None,
    quantity_bought: float,
    quantity_consumed: float,
    today: date,
) -> NotificationFrequency:
    """Pick how often to remind the owner about a product.

    Products without both dates fall back to monthly reminders. ``QUARTERLY``
    is only ever set by an explicit override.
    """
    if purchase_date is None or expiration_date is None:
        return NotificationFrequency.MONTHLY

    days_to_expiry = (expiration_date - today).days
    remaining = max(0.0, quantity_bought - quantity_consumed)

    if days_to_expiry <= 0:
        return NotificationFrequency.NEVER
    if remaining <= LOW_REMAINING_QUANTITY or days_to_expiry <= DAILY_WINDOW_DAYS:
        return NotificationFrequency.DAILY
    if days_to_expiry <= WEEKLY_WINDOW_DAYS:
        return NotificationFrequency.WEEKLY
    return NotificationFrequency.MONTHLY
