"""Tests for the product service."""

from dataclasses import replace
from datetime import timedelta
from uuid import UUID, uuid4

import pytest

from expiry_tracker.domain.pagination import PageRequest
from expiry_tracker.domain.products import (
    NotificationFrequency,
    Product,
    ProductInput,
    Status,
)
from expiry_tracker.errors import (
    ProductAccessDeniedError,
    ProductNotFoundError,
    ProductValidationError,
)
from expiry_tracker.services.products import ProductService
from tests.conftest import TODAY, InMemoryProductRepository


def make_input(name: str = "Whole Milk", **overrides: object) -> ProductInput:
    values: dict[str, object] = {
        "name": name,
        "quantity_bought": 10,
        "quantity_consumed": 0,
        "unit": "l",
        "purchase_date": TODAY - timedelta(days=30),
        "expiration_date": TODAY + timedelta(days=60),
        "tags": ["dairy"],
    }
    values.update(overrides)
    return ProductInput(**values)


def create(service: ProductService, owner_id: UUID, name: str, **overrides: object) -> Product:
    return service.create(owner_id, make_input(name, **overrides))


def test_create_assigns_owner_and_derived_fields(
    product_service: ProductService, product_repository: InMemoryProductRepository
) -> None:
    owner_id = uuid4()

    product = create(product_service, owner_id, "Whole Milk")

    assert product.id in product_repository.products
    assert product.owner_id == owner_id
    assert product.status == Status.AVAILABLE
    assert product.notification_frequency == NotificationFrequency.MONTHLY
    assert "whole" in product.search_tokens


def test_get_enforces_ownership(product_service: ProductService, admin_id: UUID) -> None:
    owner_id = uuid4()
    product = create(product_service, owner_id, "Eggs")

    assert product_service.get(owner_id, product.id) == product
    assert product_service.get(admin_id, product.id) == product
    with pytest.raises(ProductAccessDeniedError):
        product_service.get(uuid4(), product.id)


def test_get_missing_product(product_service: ProductService) -> None:
    missing = uuid4()

    with pytest.raises(ProductNotFoundError) as excinfo:
        product_service.get(uuid4(), missing)

    assert excinfo.value.product_id == missing


def test_list_all_is_admin_only(product_service: ProductService, admin_id: UUID) -> None:
    create(product_service, uuid4(), "Eggs")
    create(product_service, uuid4(), "Bread")

    assert len(product_service.list_all(admin_id)) == 2
    with pytest.raises(ProductAccessDeniedError):
        product_service.list_all(uuid4())


def test_update_recomputes_derived_fields(product_service: ProductService) -> None:
    owner_id = uuid4()
    product = create(product_service, owner_id, "Whole Milk")
    product_service.update_notification_frequency(
        owner_id, product.id, NotificationFrequency.QUARTERLY
    )

    updated = product_service.update(
        owner_id,
        product.id,
        make_input("Oat Milk", expiration_date=TODAY, tags=[]),
    )

    assert updated.name_normalized == "oat milk"
    assert updated.tags == []
    assert updated.status == Status.EXPIRED
    assert updated.notification_frequency == NotificationFrequency.NEVER


def test_delete_removes_product(
    product_service: ProductService, product_repository: InMemoryProductRepository
) -> None:
    owner_id = uuid4()
    product = create(product_service, owner_id, "Eggs")

    with pytest.raises(ProductAccessDeniedError):
        product_service.delete(uuid4(), product.id)
    product_service.delete(owner_id, product.id)

    assert product.id not in product_repository.products


def test_update_quantity_consumed_finishes_product(
    product_service: ProductService,
) -> None:
    owner_id = uuid4()
    product = create(product_service, owner_id, "Eggs")
    product_service.update_notification_frequency(owner_id, product.id, "QUARTERLY")

    updated = product_service.update_quantity_consumed(owner_id, product.id, 10)

    assert updated.status == Status.FINISHED
    assert updated.notification_frequency == NotificationFrequency.QUARTERLY
    with pytest.raises(ProductValidationError):
        product_service.update_quantity_consumed(owner_id, product.id, 11)


def test_update_notification_frequency_rejects_unknown_value(
    product_service: ProductService,
) -> None:
    owner_id = uuid4()
    product = create(product_service, owner_id, "Eggs")

    with pytest.raises(ProductValidationError):
        product_service.update_notification_frequency(owner_id, product.id, "HOURLY")


def test_tag_mutations_refresh_tokens(product_service: ProductService) -> None:
    owner_id = uuid4()
    product = create(product_service, owner_id, "Milk")

    added = product_service.add_tags(owner_id, product.id, ["breakfast", "dairy"])
    removed = product_service.remove_tags(owner_id, product.id, ["dairy"])
    replaced = product_service.replace_tags(owner_id, product.id, ["fridge"])

    assert added.tags == ["dairy", "breakfast"]
    assert "breakfast" in added.search_tokens
    assert removed.tags == ["breakfast"]
    assert "dairy" not in removed.search_tokens
    assert replaced.tags == ["fridge"]
    with pytest.raises(ProductValidationError):
        product_service.add_tags(owner_id, product.id, [" "])
    with pytest.raises(ProductValidationError):
        product_service.remove_tags(owner_id, product.id, [])


def test_list_for_owner_filters_and_paginates(
    product_service: ProductService,
) -> None:
    owner_id = uuid4()
    create(product_service, owner_id, "Apples", expiration_date=TODAY + timedelta(days=3))
    create(product_service, owner_id, "Bread", expiration_date=TODAY + timedelta(days=20))
    create(
        product_service,
        owner_id,
        "Cheese",
        purchase_date=TODAY - timedelta(days=40),
        expiration_date=TODAY - timedelta(days=1),
    )
    create(product_service, uuid4(), "Other")

    page = product_service.list_for_owner(
        owner_id,
        owner_id,
        PageRequest(page=0, size=500, sort_by="name_normalized", descending=False),
    )
    expired = product_service.list_for_owner(
        owner_id, owner_id, statuses={Status.EXPIRED}
    )
    daily = product_service.list_for_owner(
        owner_id, owner_id, frequencies={NotificationFrequency.DAILY}
    )

    assert [item.name for item in page.items] == ["Apples", "Bread", "Cheese"]
    assert page.size == 50
    assert [item.name for item in expired.items] == ["Cheese"]
    assert [item.name for item in daily.items] == ["Apples"]


def test_list_for_owner_rejects_bad_requests(
    product_service: ProductService, admin_id: UUID
) -> None:
    owner_id = uuid4()

    with pytest.raises(ProductValidationError):
        product_service.list_for_owner(owner_id, owner_id, PageRequest(sort_by="name"))
    with pytest.raises(ProductValidationError):
        product_service.list_for_owner(owner_id, owner_id, PageRequest(page=-1))
    with pytest.raises(ProductAccessDeniedError):
        product_service.list_for_owner(uuid4(), owner_id)
    assert product_service.list_for_owner(admin_id, owner_id).total == 0


def test_search_for_owner(product_service: ProductService) -> None:
    owner_id = uuid4()
    create(product_service, owner_id, "Whole Milk")
    create(product_service, owner_id, "Wheat Bread", tags=["bakery"])
    create(product_service, uuid4(), "Whole Grain")

    by_prefix = product_service.search_for_owner(owner_id, owner_id, "wh")
    by_words = product_service.search_for_owner(owner_id, owner_id, "Whole mil")
    by_tag = product_service.search_for_owner(owner_id, owner_id, "bakery")
    by_letter = product_service.search_for_owner(owner_id, owner_id, "W")
    empty = product_service.search_for_owner(owner_id, owner_id, "  ")

    assert by_prefix.total == 2
    assert [item.name for item in by_words.items] == ["Whole Milk"]
    assert [item.name for item in by_tag.items] == ["Wheat Bread"]
    assert by_letter.total == 2
    assert empty.items == []
    assert empty.total == 0


def test_recompute_statuses_saves_only_changes(
    product_service: ProductService, product_repository: InMemoryProductRepository
) -> None:
    owner_id = uuid4()
    fresh = create(product_service, owner_id, "Bread")
    stale = create(product_service, owner_id, "Cheese")
    product_repository.products[stale.id] = replace(
        stale, expiration_date=TODAY - timedelta(days=1)
    )
    product_repository.saved.clear()

    changed = product_service.recompute_statuses_for_owner(owner_id, owner_id)

    assert changed == 1
    assert product_repository.saved == [stale.id]
    assert product_repository.products[stale.id].status == Status.EXPIRED
    assert product_repository.products[fresh.id].status == Status.AVAILABLE


def test_analyze_reads_stored_product(
    product_service: ProductService, product_repository: InMemoryProductRepository
) -> None:
    owner_id = uuid4()
    product = create(
        product_service,
        owner_id,
        "Yogurt",
        quantity_consumed=4,
        expiration_date=TODAY + timedelta(days=10),
    )

    report = product_service.analyze(owner_id, product.id)

    assert report.remaining_quantity == 6.0
    assert report.recommended_daily_to_finish == 0.6
    assert report.status_suggestion == product.status
    assert product_repository.products[product.id] == product


def test_backfill_derived_fields(
    product_service: ProductService, product_repository: InMemoryProductRepository
) -> None:
    product = create(product_service, uuid4(), "Whole Milk")
    create(product_service, uuid4(), "Bread")
    product_repository.products[product.id] = replace(
        product, name_normalized="", search_tokens=[]
    )

    changed = product_service.backfill_derived_fields()

    assert changed == 1
    assert product_repository.products[product.id].search_tokens == product.search_tokens
    assert product_service.backfill_derived_fields() == 0
