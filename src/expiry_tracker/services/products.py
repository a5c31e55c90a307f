"""Application service for tracked products."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol
from uuid import UUID

from expiry_tracker.domain.analysis import ProductAnalysis
from expiry_tracker.domain.pagination import Page, PageRequest
from expiry_tracker.domain.products import (
    NotificationFrequency,
    Product,
    ProductInput,
    Status,
    normalize_tags,
)
from expiry_tracker.errors import (
    ProductAccessDeniedError,
    ProductNotFoundError,
    ProductValidationError,
)
from expiry_tracker.services.analysis import analyze_product
from expiry_tracker.services.assembler import (
    apply_notification_frequency,
    apply_quantity_consumed,
    apply_tags,
    apply_update,
    build_product,
    normalize_name,
    refresh_derived,
)
from expiry_tracker.services.search_tokens import query_terms

_logger = logging.getLogger(__name__)

SORTABLE_FIELDS = frozenset(
    {
        "name_normalized",
        "expiration_date",
        "purchase_date",
        "created_at",
        "updated_at",
        "status",
        "quantity_bought",
    }
)


class ProductRepository(Protocol):
    """Persistence interface for products."""

    def create_product(self, product: Product) -> Product:
        """Insert a product and return it with its id and timestamps."""

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id, if present."""

    def save_product(self, product: Product) -> Product:
        """Persist every field of an existing product and return it."""

    def save_products(self, products: list[Product]) -> list[Product]:
        """Persist a batch of existing products."""

    def delete_product(self, product_id: UUID) -> None:
        """Hard-delete a product."""

    def list_products(self) -> list[Product]:
        """Return every product."""

    def list_products_for_owner(self, owner_id: UUID) -> list[Product]:
        """Return every product of an owner."""

    def page_products_for_owner(
        self,
        owner_id: UUID,
        page: PageRequest,
        statuses: set[Status] | None = None,
        frequencies: set[NotificationFrequency] | None = None,
    ) -> Page[Product]:
        """Return a sorted, filtered page of an owner's products."""

    def search_by_tokens(
        self, owner_id: UUID, terms: list[str], page: PageRequest
    ) -> Page[Product]:
        """Return products whose search tokens contain every term."""

    def search_by_name_prefix(
        self, owner_id: UUID, prefix: str, page: PageRequest
    ) -> Page[Product]:
        """Return products whose normalized name starts with ``prefix``."""


@dataclass
class ProductService:
    """Owner-scoped product operations.

    Callers are identified by ``caller_id``; the owner of a product and any id
    in ``admin_user_ids`` may act on it.
    """

    repository: ProductRepository
    admin_user_ids: set[UUID] = field(default_factory=set)
    today: Callable[[], date] = date.today
    default_page_size: int = 20
    max_page_size: int = 100

    def create(self, caller_id: UUID, payload: ProductInput) -> Product:
        """Create a product owned by the caller."""
        product = build_product(caller_id, payload, self.today())
        created = self.repository.create_product(product)
        _logger.info("Product created: id=%s owner=%s", created.id, caller_id)
        return created

    def get(self, caller_id: UUID, product_id: UUID) -> Product:
        """Return a product the caller may access."""
        return self._load(caller_id, product_id)

    def list_all(self, caller_id: UUID) -> list[Product]:
        """Return every product; administrators only."""
        if not self.is_admin(caller_id):
            _logger.warning("Product list denied: caller=%s", caller_id)
            raise ProductAccessDeniedError(caller_id)
        return self.repository.list_products()

    def update(
        self, caller_id: UUID, product_id: UUID, payload: ProductInput
    ) -> Product:
        """Replace the mutable fields of a product."""
        existing = self._load(caller_id, product_id)
        saved = self.repository.save_product(
            apply_update(existing, payload, self.today())
        )
        _logger.info("Product updated: id=%s status=%s", product_id, saved.status)
        return saved

    def delete(self, caller_id: UUID, product_id: UUID) -> None:
        """Hard-delete a product."""
        self._load(caller_id, product_id)
        self.repository.delete_product(product_id)
        _logger.info("Product deleted: id=%s caller=%s", product_id, caller_id)

    def update_quantity_consumed(
        self, caller_id: UUID, product_id: UUID, quantity_consumed: float
    ) -> Product:
        """Record how much of a product has been consumed."""
        existing = self._load(caller_id, product_id)
        updated = apply_quantity_consumed(existing, quantity_consumed, self.today())
        return self.repository.save_product(updated)

    def update_notification_frequency(
        self,
        caller_id: UUID,
        product_id: UUID,
        frequency: NotificationFrequency | str,
    ) -> Product:
        """Override the reminder cadence of a product."""
        try:
            resolved = NotificationFrequency(frequency)
        except ValueError as exc:
            raise ProductValidationError(
                f"Invalid notification frequency: {frequency}"
            ) from exc
        existing = self._load(caller_id, product_id)
        saved = self.repository.save_product(
            apply_notification_frequency(existing, resolved)
        )
        _logger.info(
            "Product cadence overridden: id=%s frequency=%s", product_id, resolved
        )
        return saved

    def replace_tags(
        self, caller_id: UUID, product_id: UUID, tags: list[str] | None
    ) -> Product:
        """Replace every tag of a product."""
        existing = self._load(caller_id, product_id)
        return self.repository.save_product(apply_tags(existing, tags, self.today()))

    def add_tags(self, caller_id: UUID, product_id: UUID, tags: list[str]) -> Product:
        """Append tags that are not already present."""
        additions = _require_tags(tags)
        existing = self._load(caller_id, product_id)
        merged = existing.tags + additions
        return self.repository.save_product(
            apply_tags(existing, merged, self.today())
        )

    def remove_tags(
        self, caller_id: UUID, product_id: UUID, tags: list[str]
    ) -> Product:
        """Remove the given tags from a product."""
        removals = set(_require_tags(tags))
        existing = self._load(caller_id, product_id)
        kept = [tag for tag in existing.tags if tag not in removals]
        return self.repository.save_product(apply_tags(existing, kept, self.today()))

    def list_for_owner(
        self,
        caller_id: UUID,
        owner_id: UUID,
        page: PageRequest | None = None,
        statuses: set[Status] | None = None,
        frequencies: set[NotificationFrequency] | None = None,
    ) -> Page[Product]:
        """Return a page of an owner's products."""
        self._check_owner_access(caller_id, owner_id)
        return self.repository.page_products_for_owner(
            owner_id,
            self._resolve_page(page),
            statuses=statuses or None,
            frequencies=frequencies or None,
        )

    def search_for_owner(
        self,
        caller_id: UUID,
        owner_id: UUID,
        query: str | None,
        page: PageRequest | None = None,
    ) -> Page[Product]:
        """Search an owner's products by name and tags.

        Queries with words of two or more characters match stored search
        tokens; shorter queries fall back to a normalized-name prefix match.
        """
        self._check_owner_access(caller_id, owner_id)
        resolved = self._resolve_page(page)
        prefix = normalize_name(query)
        if not prefix:
            return Page(items=[], total=0, page=resolved.page, size=resolved.size)
        terms = query_terms(prefix)
        if terms:
            return self.repository.search_by_tokens(owner_id, terms, resolved)
        return self.repository.search_by_name_prefix(owner_id, prefix, resolved)

    def recompute_statuses_for_owner(self, caller_id: UUID, owner_id: UUID) -> int:
        """Refresh derived fields of an owner's products; return how many changed."""
        self._check_owner_access(caller_id, owner_id)
        changed = self._refresh(self.repository.list_products_for_owner(owner_id))
        _logger.info(
            "Product statuses recomputed: owner=%s changed=%s", owner_id, changed
        )
        return changed

    def analyze(self, caller_id: UUID, product_id: UUID) -> ProductAnalysis:
        """Return the consumption report of a product."""
        return analyze_product(self._load(caller_id, product_id), self.today())

    def backfill_derived_fields(self) -> int:
        """Re-derive stale normalized names, search tokens and statuses."""
        changed = self._refresh(self.repository.list_products())
        _logger.info("Product backfill finished: changed=%s", changed)
        return changed

    def is_admin(self, caller_id: UUID) -> bool:
        """Return True when the caller is a configured administrator."""
        return caller_id in self.admin_user_ids

    def _refresh(self, products: list[Product]) -> int:
        today = self.today()
        stale = []
        for product in products:
            refreshed = refresh_derived(product, today)
            if refreshed != product:
                stale.append(refreshed)
        if stale:
            self.repository.save_products(stale)
        return len(stale)

    def _load(self, caller_id: UUID, product_id: UUID) -> Product:
        product = self.repository.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if product.owner_id != caller_id and not self.is_admin(caller_id):
            _logger.warning(
                "Product access denied: caller=%s product=%s", caller_id, product_id
            )
            raise ProductAccessDeniedError(caller_id, product_id=product_id)
        return product

    def _check_owner_access(self, caller_id: UUID, owner_id: UUID) -> None:
        if caller_id != owner_id and not self.is_admin(caller_id):
            _logger.warning(
                "Owner access denied: caller=%s owner=%s", caller_id, owner_id
            )
            raise ProductAccessDeniedError(caller_id, owner_id=owner_id)

    def _resolve_page(self, page: PageRequest | None) -> PageRequest:
        if page is None:
            return PageRequest(size=self.default_page_size)
        if page.page < 0:
            raise ProductValidationError("page cannot be negative")
        if page.sort_by not in SORTABLE_FIELDS:
            raise ProductValidationError(f"Unsupported sort field: {page.sort_by}")
        size = min(max(page.size, 1), self.max_page_size)
        return PageRequest(
            page=page.page, size=size, sort_by=page.sort_by, descending=page.descending
        )


def _require_tags(tags: list[str] | None) -> list[str]:
    cleaned = normalize_tags(tags)
    if not cleaned:
        raise ProductValidationError("At least one tag is required")
    return cleaned
