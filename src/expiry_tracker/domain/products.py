"""Domain models for tracked products."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, StrEnum
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Status(StrEnum):
    """Lifecycle state of a product."""

    AVAILABLE = "AVAILABLE"
    FINISHED = "FINISHED"
    EXPIRED = "EXPIRED"
    EXPIRED_AND_FINISHED = "EXPIRED_AND_FINISHED"


class NotificationFrequency(StrEnum):
    """How often reminders are sent for a product."""

    NEVER = "NEVER"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"


class Unit(Enum):
    """Unit of measure, stored by its short label."""

    PIECES = "pcs"
    GRAM = "g"
    KILOGRAM = "kg"
    LITER = "l"
    MILLILITER = "ml"
    OUNCE = "oz"
    POUND = "lb"
    CUP = "cup"
    QUART = "qt"
    GALLON = "gal"
    BOTTLE = "bottle"
    BOX = "box"
    PACK = "pack"

    @classmethod
    def from_value(cls, value: str) -> "Unit":
        """Resolve a unit from its label or member name, ignoring case."""
        cleaned = value.strip().lower()
        for unit in cls:
            if cleaned in (unit.value, unit.name.lower()):
                return unit
        raise ValueError(f"Invalid unit: {value}")


@dataclass(frozen=True)
class Product:
    """A perishable product owned by a user."""

    id: UUID | None
    owner_id: UUID
    name: str
    name_normalized: str
    tags: list[str]
    search_tokens: list[str]
    quantity_bought: float
    quantity_consumed: float
    unit: Unit
    purchase_date: date | None
    expiration_date: date | None
    status: Status
    notification_frequency: NotificationFrequency
    created_at: datetime | None = None
    updated_at: datetime | None = field(default=None, compare=False)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    cleaned: list[str] = []
    for tag in tags or []:
        if tag is None:
            continue
        value = tag.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class ProductInput(BaseModel):
    """Validated payload for creating or fully updating a product."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=200)
    quantity_bought: float = Field(ge=0)
    quantity_consumed: float = Field(default=0.0, ge=0)
    unit: Unit
    purchase_date: date | None = None
    expiration_date: date
    tags: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name is required")
        return value.strip()

    @field_validator("unit", mode="before")
    @classmethod
    def _parse_unit(cls, value: object) -> object:
        if isinstance(value, str):
            return Unit.from_value(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return normalize_tags([str(tag) for tag in value if tag is not None])
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if self.quantity_consumed > self.quantity_bought:
            raise ValueError("quantity_consumed cannot exceed quantity_bought")
        if self.purchase_date and self.expiration_date < self.purchase_date:
            raise ValueError("expiration_date cannot be before purchase_date")
        return self
