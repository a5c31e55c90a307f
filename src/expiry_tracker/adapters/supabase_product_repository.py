"""Supabase implementation for product persistence."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from expiry_tracker.domain.pagination import Page, PageRequest
from expiry_tracker.domain.products import (
    NotificationFrequency,
    Product,
    Status,
    Unit,
)
from expiry_tracker.services.products import ProductRepository


@dataclass
class SupabaseProductRepository(ProductRepository):
    """Supabase-backed repository for products."""

    client: Client
    table_name: str = "products"

    def create_product(self, product: Product) -> Product:
        """Insert a product and return it with its id and timestamps."""
        response = (
            self.client.table(self.table_name)
            .insert(_serialize_product(product))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create product")
        return _parse_product(response.data[0])

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id, if present."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("id", str(product_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_product(response.data[0])

    def save_product(self, product: Product) -> Product:
        """Persist every mutable field of a product and return it."""
        if product.id is None:
            raise RuntimeError("Cannot save a product without an id")
        response = (
            self.client.table(self.table_name)
            .update(_serialize_product(product))
            .eq("id", str(product.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update product")
        return _parse_product(response.data[0])

    def save_products(self, products: list[Product]) -> list[Product]:
        """Persist a batch of existing products."""
        return [self.save_product(product) for product in products]

    def delete_product(self, product_id: UUID) -> None:
        """Hard-delete a product."""
        self.client.table(self.table_name).delete().eq(
            "id", str(product_id)
        ).execute()

    def list_products(self) -> list[Product]:
        """Return every product."""
        response = self.client.table(self.table_name).select("*").execute()
        return [_parse_product(row) for row in response.data or []]

    def list_products_for_owner(self, owner_id: UUID) -> list[Product]:
        """Return every product of an owner."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("owner_id", str(owner_id))
            .execute()
        )
        return [_parse_product(row) for row in response.data or []]

    def page_products_for_owner(
        self,
        owner_id: UUID,
        page: PageRequest,
        statuses: set[Status] | None = None,
        frequencies: set[NotificationFrequency] | None = None,
    ) -> Page[Product]:
        """Return a sorted, filtered page of an owner's products."""
        query = (
            self.client.table(self.table_name)
            .select("*", count="exact")
            .eq("owner_id", str(owner_id))
        )
        if statuses:
            query = query.in_("status", sorted(status.value for status in statuses))
        if frequencies:
            query = query.in_(
                "notification_frequency",
                sorted(frequency.value for frequency in frequencies),
            )
        return _fetch_page(query, page)

    def search_by_tokens(
        self, owner_id: UUID, terms: list[str], page: PageRequest
    ) -> Page[Product]:
        """Return products whose search tokens contain every term."""
        query = (
            self.client.table(self.table_name)
            .select("*", count="exact")
            .eq("owner_id", str(owner_id))
            .contains("search_tokens", terms)
        )
        return _fetch_page(query, page)

    def search_by_name_prefix(
        self, owner_id: UUID, prefix: str, page: PageRequest
    ) -> Page[Product]:
        """Return products whose normalized name starts with ``prefix``."""
        query = (
            self.client.table(self.table_name)
            .select("*", count="exact")
            .eq("owner_id", str(owner_id))
            .like("name_normalized", f"{_escape_like(prefix)}%")
        )
        return _fetch_page(query, page)


def _fetch_page(query, page: PageRequest) -> Page[Product]:  # type: ignore[no-untyped-def]
    response = (
        query.order(page.sort_by, desc=page.descending)
        .range(page.offset, page.offset + page.size - 1)
        .execute()
    )
    items = [_parse_product(row) for row in response.data or []]
    total = response.count if response.count is not None else len(items)
    return Page(items=items, total=total, page=page.page, size=page.size)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _serialize_product(product: Product) -> dict[str, object]:
    """Convert a product into a row payload; persistence owns id and timestamps."""
    return {
        "owner_id": str(product.owner_id),
        "name": product.name,
        "name_normalized": product.name_normalized,
        "tags": list(product.tags),
        "search_tokens": list(product.search_tokens),
        "quantity_bought": product.quantity_bought,
        "quantity_consumed": product.quantity_consumed,
        "unit": product.unit.value,
        "purchase_date": _format_date(product.purchase_date),
        "expiration_date": _format_date(product.expiration_date),
        "status": product.status.value,
        "notification_frequency": product.notification_frequency.value,
    }


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _parse_date(raw: object) -> date | None:
    if isinstance(raw, str) and raw:
        return date.fromisoformat(raw[:10])
    return None


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_product(row: dict[str, object]) -> Product:
    """Parse a product row into a domain model."""
    return Product(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["owner_id"])),
        name=str(row.get("name", "")),
        name_normalized=str(row.get("name_normalized") or ""),
        tags=list(row.get("tags") or []),
        search_tokens=list(row.get("search_tokens") or []),
        quantity_bought=float(row.get("quantity_bought") or 0.0),
        quantity_consumed=float(row.get("quantity_consumed") or 0.0),
        unit=Unit.from_value(str(row.get("unit") or Unit.PIECES.value)),
        purchase_date=_parse_date(row.get("purchase_date")),
        expiration_date=_parse_date(row.get("expiration_date")),
        status=Status(row.get("status") or Status.AVAILABLE.value),
        notification_frequency=NotificationFrequency(
            row.get("notification_frequency") or NotificationFrequency.MONTHLY.value
        ),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )
