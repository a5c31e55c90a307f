"""Lifecycle status resolution for products."""

from datetime import date

from expiry_tracker.domain.products import Status


def combine_status(finished: bool, expired: bool) -> Status:
    """Map the finished/expired flags onto a single status."""
    if finished and expired:
        return Status.EXPIRED_AND_FINISHED
    if finished:
        return Status.FINISHED
    if expired:
        return Status.EXPIRED
    return Status.AVAILABLE


def is_finished(quantity_bought: float, quantity_consumed: float) -> bool:
    """Return whether everything bought has been consumed."""
    return quantity_bought > 0 and quantity_consumed >= quantity_bought


def is_expired(expiration_date: date | None, today: date) -> bool:
    """Return whether the product is expired; the expiration day counts."""
    return expiration_date is not None and expiration_date <= today


def resolve_status(
    quantity_bought: float,
    quantity_consumed: float,
    expiration_date: date | None,
    today: date,
) -> Status:
    """Derive the lifecycle status of a product."""
    return combine_status(
        is_finished(quantity_bought, quantity_consumed),
        is_expired(expiration_date, today),
    )
