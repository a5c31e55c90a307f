"""Tests for the notification cadence heuristic."""

from datetime import date, timedelta

from expiry_tracker.domain.products import NotificationFrequency
from expiry_tracker.services.cadence import calculate_cadence

TODAY = date(2025, 3, 15)
PURCHASED = TODAY - timedelta(days=2)


def test_expired_product_is_never_reminded() -> None:
    frequency = calculate_cadence(date(2024, 1, 1), date(2024, 1, 2), 10, 0, TODAY)

    assert frequency == NotificationFrequency.NEVER


def test_expiring_today_is_never_reminded() -> None:
    assert calculate_cadence(PURCHASED, TODAY, 10, 0, TODAY) == NotificationFrequency.NEVER


def test_cadence_windows() -> None:
    def cadence(days: int) -> NotificationFrequency:
        return calculate_cadence(
            PURCHASED, TODAY + timedelta(days=days), 10, 0, TODAY
        )

    assert cadence(3) == NotificationFrequency.DAILY
    assert cadence(7) == NotificationFrequency.DAILY
    assert cadence(8) == NotificationFrequency.WEEKLY
    assert cadence(20) == NotificationFrequency.WEEKLY
    assert cadence(30) == NotificationFrequency.WEEKLY
    assert cadence(31) == NotificationFrequency.MONTHLY
    assert cadence(90) == NotificationFrequency.MONTHLY


def test_low_remaining_quantity_is_daily() -> None:
    frequency = calculate_cadence(
        PURCHASED, TODAY + timedelta(days=90), 10, 8, TODAY
    )

    assert frequency == NotificationFrequency.DAILY


def test_missing_dates_default_to_monthly() -> None:
    expiration = TODAY + timedelta(days=2)

    assert calculate_cadence(None, expiration, 10, 0, TODAY) == (
        NotificationFrequency.MONTHLY
    )
    assert calculate_cadence(PURCHASED, None, 10, 0, TODAY) == (
        NotificationFrequency.MONTHLY
    )
