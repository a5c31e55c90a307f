"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from expiry_tracker.config import Settings
from expiry_tracker.domain.pagination import Page, PageRequest
from expiry_tracker.domain.products import NotificationFrequency, Product, Status
from expiry_tracker.services.products import ProductRepository, ProductService

TODAY = date(2025, 3, 15)


@dataclass
class InMemoryProductRepository(ProductRepository):
    """In-memory product repository for tests."""

    products: dict[UUID, Product] = field(default_factory=dict)
    saved: list[UUID] = field(default_factory=list)

    def create_product(self, product: Product) -> Product:
        now = datetime.now(tz=UTC)
        created = replace(product, id=uuid4(), created_at=now, updated_at=now)
        self.products[created.id] = created
        return created

    def get_product(self, product_id: UUID) -> Product | None:
        return self.products.get(product_id)

    def save_product(self, product: Product) -> Product:
        if product.id not in self.products:
            raise RuntimeError("Failed to update product")
        saved = replace(product, updated_at=datetime.now(tz=UTC))
        self.products[product.id] = saved
        self.saved.append(product.id)
        return saved

    def save_products(self, products: list[Product]) -> list[Product]:
        return [self.save_product(product) for product in products]

    def delete_product(self, product_id: UUID) -> None:
        self.products.pop(product_id, None)

    def list_products(self) -> list[Product]:
        return list(self.products.values())

    def list_products_for_owner(self, owner_id: UUID) -> list[Product]:
        return [p for p in self.products.values() if p.owner_id == owner_id]

    def page_products_for_owner(
        self,
        owner_id: UUID,
        page: PageRequest,
        statuses: set[Status] | None = None,
        frequencies: set[NotificationFrequency] | None = None,
    ) -> Page[Product]:
        items = [
            p
            for p in self.list_products_for_owner(owner_id)
            if (not statuses or p.status in statuses)
            and (not frequencies or p.notification_frequency in frequencies)
        ]
        return _paginate(items, page)

    def search_by_tokens(
        self, owner_id: UUID, terms: list[str], page: PageRequest
    ) -> Page[Product]:
        items = [
            p
            for p in self.list_products_for_owner(owner_id)
            if all(term in p.search_tokens for term in terms)
        ]
        return _paginate(items, page)

    def search_by_name_prefix(
        self, owner_id: UUID, prefix: str, page: PageRequest
    ) -> Page[Product]:
        items = [
            p
            for p in self.list_products_for_owner(owner_id)
            if p.name_normalized.startswith(prefix)
        ]
        return _paginate(items, page)


def _paginate(items: list[Product], page: PageRequest) -> Page[Product]:
    def sort_key(product: Product) -> tuple[bool, object]:
        value = getattr(product, page.sort_by)
        return (value is None, value if value is not None else "")

    ordered = sorted(items, key=sort_key, reverse=page.descending)
    window = ordered[page.offset : page.offset + page.size]
    return Page(items=window, total=len(items), page=page.page, size=page.size)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def product_repository() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def admin_id() -> UUID:
    return uuid4()


@pytest.fixture
def product_service(
    product_repository: InMemoryProductRepository, admin_id: UUID
) -> ProductService:
    return ProductService(
        repository=product_repository,
        admin_user_ids={admin_id},
        today=lambda: TODAY,
        default_page_size=20,
        max_page_size=50,
    )
