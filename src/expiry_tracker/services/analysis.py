"""Consumption analytics for a single product."""

import math
from dataclasses import asdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from expiry_tracker.domain.analysis import ProductAnalysis
from expiry_tracker.domain.products import Product
from expiry_tracker.errors import InvalidInputError
from expiry_tracker.services.status import combine_status

FINISHED_EPSILON = 0.001
SLOW_PACE_RATIO = 0.7
FAST_PACE_RATIO = 1.5
URGENT_DAYS = 3
SOON_DAYS = 7
COMFORTABLE_MARGIN_DAYS = 7
IDLE_DAYS_BEFORE_NUDGE = 2
MONTHS_PER_YEAR = 12


def round_half_up(value: float, places: int) -> float:
    """Round using the decimal representation of ``value``, halves away from zero."""
    if math.isnan(value) or math.isinf(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def months_between(start: date, end: date) -> int:
    """Return complete calendar months from ``start`` to ``end``, toward zero."""
    months = (end.year - start.year) * MONTHS_PER_YEAR + end.month - start.month
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def _years_from_months(months: int) -> int:
    if months < 0:
        return -(-months // MONTHS_PER_YEAR)
    return months // MONTHS_PER_YEAR


def analyze(
    quantity_bought: float | None,
    quantity_consumed: float | None,
    purchase_date: date | None,
    expiration_date: date | None,
    today: date,
) -> ProductAnalysis:
    """Build a consumption report.

    Only a missing or non-positive ``quantity_bought`` is fatal. Every other
    irregularity is sanitized and reported in ``warnings``.
    """
    if quantity_bought is None:
        raise InvalidInputError("quantity_bought is required")
    if quantity_bought <= 0:
        raise InvalidInputError("quantity_bought must be greater than 0")

    warnings: list[str] = []
    bought = float(quantity_bought)
    consumed = float(quantity_consumed) if quantity_consumed is not None else 0.0

    if consumed < 0:
        warnings.append(
            "Consumed quantity cannot be negative. Treating as 0 for calculations."
        )
        consumed = 0.0

    remaining = bought - consumed
    if remaining < 0:
        warnings.append(
            "Consumed quantity exceeds purchased quantity. "
            "The product appears to be fully consumed."
        )
        remaining = 0.0

    percent_consumed = min(100.0, max(0.0, consumed / bought * 100))

    # Expiration
    days_until_expiration: int | None = None
    months_until_expiration: int | None = None
    years_until_expiration: int | None = None
    expired = False
    if expiration_date is not None:
        days_until_expiration = (expiration_date - today).days
        months_until_expiration = months_between(today, expiration_date)
        years_until_expiration = _years_from_months(months_until_expiration)
        expired = today >= expiration_date
        if expired and remaining > 0:
            warnings.append(
                f"This product has expired with {round_half_up(remaining, 2)} "
                "units remaining. Consider discarding it."
            )
        elif days_until_expiration <= URGENT_DAYS and remaining > 0:
            warnings.append(
                f"URGENT: Only {days_until_expiration} days until expiration!"
            )
        elif days_until_expiration <= SOON_DAYS and remaining > 0:
            warnings.append(f"Expiring soon: {days_until_expiration} days left.")
    else:
        warnings.append(
            "No expiration date set. Expiration-related metrics unavailable."
        )

    # Consumption rate
    days_since_purchase: int | None = None
    current_rate: float | None = None
    if purchase_date is not None:
        elapsed = (today - purchase_date).days
        if elapsed < 0:
            warnings.append(
                "Purchase date is in the future. Cannot calculate consumption rate."
            )
        elif elapsed == 0:
            days_since_purchase = 0
            if consumed > 0:
                current_rate = consumed
            else:
                warnings.append(
                    "Purchased today with nothing consumed yet. "
                    "Consumption rate unavailable."
                )
        else:
            days_since_purchase = elapsed
            current_rate = consumed / elapsed
    else:
        warnings.append("No purchase date set. Cannot calculate consumption rate.")

    # Recommendation and pace
    recommended_daily: float | None = None
    recommended_monthly: float | None = None
    if expiration_date is not None and not expired and remaining > 0:
        days_left = (expiration_date - today).days
        if days_left > 0:
            recommended_daily = remaining / days_left
            months_left = months_between(today, expiration_date)
            if months_left >= 1:
                recommended_monthly = remaining / months_left
            warnings.extend(
                _pace_advice(
                    current_rate, recommended_daily, days_since_purchase, consumed
                )
            )

    # Projection
    estimated_finish_date: date | None = None
    estimated_days_to_finish: int | None = None
    if current_rate is not None and current_rate > 0 and remaining > 0:
        estimated_days_to_finish = math.ceil(remaining / current_rate)
        estimated_finish_date = today + timedelta(days=estimated_days_to_finish)
        if expiration_date is not None and estimated_finish_date > expiration_date:
            days_late = (estimated_finish_date - expiration_date).days
            warnings.append(
                f"At current pace, you'll finish {days_late} days AFTER expiration. "
                "Increase consumption to finish on time."
            )
        elif expiration_date is not None and not expired:
            days_early = (expiration_date - estimated_finish_date).days
            if days_early > COMFORTABLE_MARGIN_DAYS:
                warnings.append(
                    f"At current pace, you'll finish {days_early} days "
                    "before expiration. Well done!"
                )

    suggestion = combine_status(remaining <= FINISHED_EPSILON, expired)

    return ProductAnalysis(
        remaining_quantity=round_half_up(remaining, 4),
        percent_consumed=round_half_up(percent_consumed, 2),
        percent_remaining=round_half_up(100.0 - percent_consumed, 2),
        days_until_expiration=days_until_expiration,
        months_until_expiration=months_until_expiration,
        years_until_expiration=years_until_expiration,
        is_expired=expired,
        days_since_purchase=days_since_purchase,
        current_avg_daily_consumption=_round_rate(current_rate),
        recommended_daily_to_finish=_round_rate(recommended_daily),
        recommended_monthly_to_finish=_round_rate(recommended_monthly),
        estimated_finish_date=estimated_finish_date,
        estimated_days_to_finish=estimated_days_to_finish,
        status_suggestion=suggestion,
        summary=_summary(
            bought, consumed, remaining, days_until_expiration, suggestion.value
        ),
        warnings=warnings,
    )


def analyze_product(product: Product, today: date) -> ProductAnalysis:
    """Analyze a stored product without modifying it."""
    return analyze(
        product.quantity_bought,
        product.quantity_consumed,
        product.purchase_date,
        product.expiration_date,
        today,
    )


def analysis_to_dict(report: ProductAnalysis) -> dict[str, object]:
    """Serialize a report; uncomputable fields stay present as ``None``."""
    payload = asdict(report)
    payload["status_suggestion"] = report.status_suggestion.value
    payload["estimated_finish_date"] = (
        report.estimated_finish_date.isoformat()
        if report.estimated_finish_date
        else None
    )
    payload["warnings"] = list(report.warnings)
    return payload


def _round_rate(value: float | None) -> float | None:
    if value is None:
        return None
    return round_half_up(value, 6)


def _pace_advice(
    current_rate: float | None,
    recommended_daily: float,
    days_since_purchase: int | None,
    consumed: float,
) -> list[str]:
    if current_rate is not None and current_rate > 0:
        ratio = current_rate / recommended_daily
        current = round_half_up(current_rate, 2)
        target = round_half_up(recommended_daily, 2)
        if ratio < SLOW_PACE_RATIO:
            return [
                f"Current pace ({current}/day) is below recommended ({target}/day). "
                "Increase usage to finish before expiration."
            ]
        if ratio > FAST_PACE_RATIO:
            return [
                f"Current pace ({current}/day) is faster than needed "
                f"({target}/day). You can slow down."
            ]
        return ["You're on track! Current pace will finish the product before expiration."]
    if (
        days_since_purchase is not None
        and days_since_purchase > IDLE_DAYS_BEFORE_NUDGE
        and consumed == 0
    ):
        return [
            f"Haven't started consuming yet. Begin using "
            f"{round_half_up(recommended_daily, 2)} units per day to finish "
            "before expiration."
        ]
    return []


def _summary(
    bought: float,
    consumed: float,
    remaining: float,
    days_until_expiration: int | None,
    status: str,
) -> str:
    parts = [
        f"Bought: {round_half_up(bought, 2)}",
        f"Consumed: {round_half_up(consumed, 2)} "
        f"({round_half_up(consumed / bought * 100, 1)}%)",
        f"Remaining: {round_half_up(remaining, 2)}",
    ]
    if days_until_expiration is None:
        parts.append("No expiration date")
    elif days_until_expiration < 0:
        parts.append(f"Expired {abs(days_until_expiration)} days ago")
    elif days_until_expiration == 0:
        parts.append("Expires TODAY")
    else:
        parts.append(f"Expires in {days_until_expiration} days")
    parts.append(f"Status: {status}")
    return " | ".join(parts)
