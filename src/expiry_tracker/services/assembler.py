"""Assemble product records from input payloads and derived fields."""

from dataclasses import replace
from datetime import date
from uuid import UUID

from expiry_tracker.domain.products import (
    NotificationFrequency,
    Product,
    ProductInput,
    Status,
    normalize_tags,
)
from expiry_tracker.errors import ProductValidationError
from expiry_tracker.services.cadence import calculate_cadence
from expiry_tracker.services.search_tokens import build_search_tokens
from expiry_tracker.services.status import resolve_status


def normalize_name(name: str | None) -> str:
    """Return the lowercase, trimmed form of a product name."""
    return (name or "").strip().lower()


def derive(product: Product, today: date, *, recompute_cadence: bool) -> Product:
    """Recompute every derived field of ``product``.

    ``notification_frequency`` is only recomputed when ``recompute_cadence`` is
    set, so a manual override survives partial mutations.
    """
    name_normalized = normalize_name(product.name)
    frequency = product.notification_frequency
    if recompute_cadence:
        frequency = calculate_cadence(
            product.purchase_date,
            product.expiration_date,
            product.quantity_bought,
            product.quantity_consumed,
            today,
        )
    return replace(
        product,
        name_normalized=name_normalized,
        search_tokens=build_search_tokens(name_normalized, product.tags),
        status=resolve_status(
            product.quantity_bought,
            product.quantity_consumed,
            product.expiration_date,
            today,
        ),
        notification_frequency=frequency,
    )


def build_product(owner_id: UUID, payload: ProductInput, today: date) -> Product:
    """Create an unsaved product for ``owner_id`` from a validated payload."""
    draft = Product(
        id=None,
        owner_id=owner_id,
        name=payload.name,
        name_normalized="",
        tags=normalize_tags(payload.tags),
        search_tokens=[],
        quantity_bought=payload.quantity_bought,
        quantity_consumed=payload.quantity_consumed,
        unit=payload.unit,
        purchase_date=payload.purchase_date,
        expiration_date=payload.expiration_date,
        status=Status.AVAILABLE,
        notification_frequency=NotificationFrequency.MONTHLY,
    )
    return derive(draft, today, recompute_cadence=True)


def apply_update(existing: Product, payload: ProductInput, today: date) -> Product:
    """Apply a full update; the cadence is recomputed."""
    updated = replace(
        existing,
        name=payload.name,
        tags=normalize_tags(payload.tags),
        quantity_bought=payload.quantity_bought,
        quantity_consumed=payload.quantity_consumed,
        unit=payload.unit,
        purchase_date=payload.purchase_date,
        expiration_date=payload.expiration_date,
    )
    return derive(updated, today, recompute_cadence=True)


def apply_quantity_consumed(
    existing: Product, quantity_consumed: float, today: date
) -> Product:
    """Set the consumed quantity, rejecting values outside ``[0, bought]``."""
    if quantity_consumed < 0:
        raise ProductValidationError("quantity_consumed cannot be negative")
    if quantity_consumed > existing.quantity_bought:
        raise ProductValidationError(
            "quantity_consumed cannot exceed quantity_bought"
        )
    updated = replace(existing, quantity_consumed=float(quantity_consumed))
    return derive(updated, today, recompute_cadence=False)


def apply_tags(existing: Product, tags: list[str] | None, today: date) -> Product:
    """Replace the tags of a product and refresh its search tokens."""
    updated = replace(existing, tags=normalize_tags(tags))
    return derive(updated, today, recompute_cadence=False)


def apply_notification_frequency(
    existing: Product, frequency: NotificationFrequency
) -> Product:
    """Override the reminder cadence until the next full update."""
    return replace(existing, notification_frequency=frequency)


def refresh_derived(product: Product, today: date) -> Product:
    """Re-derive status and search fields, keeping the current cadence."""
    return derive(product, today, recompute_cadence=False)
