"""Dependency container wiring for the application."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from supabase import create_client

from expiry_tracker.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from expiry_tracker.app_logging import configure_logging
from expiry_tracker.config import Settings, parse_admin_user_ids
from expiry_tracker.services.products import ProductRepository, ProductService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    product_repository: ProductRepository
    product_service: ProductService


def today_in(timezone: str) -> Callable[[], date]:
    """Return a callable giving the current date in ``timezone``."""
    zone = ZoneInfo(timezone)

    def today() -> date:
        return datetime.now(tz=zone).date()

    return today


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    configure_logging()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    product_repository = SupabaseProductRepository(
        supabase_client, table_name=resolved_settings.products_table
    )
    product_service = ProductService(
        repository=product_repository,
        admin_user_ids=parse_admin_user_ids(resolved_settings.admin_user_ids),
        today=today_in(resolved_settings.timezone),
        default_page_size=resolved_settings.default_page_size,
        max_page_size=resolved_settings.max_page_size,
    )
    return AppContainer(
        settings=resolved_settings,
        product_repository=product_repository,
        product_service=product_service,
    )
