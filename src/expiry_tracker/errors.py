"""Exceptions raised by the product core and service."""

from uuid import UUID


class InvalidInputError(ValueError):
    """Raised when the analytics engine receives an unusable quantity."""


class ProductValidationError(ValueError):
    """Raised when a partial update or page request is rejected."""


class ProductNotFoundError(LookupError):
    """Raised when a product does not exist."""

    def __init__(self, product_id: UUID) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class ProductAccessDeniedError(PermissionError):
    """Raised when a caller touches a product or owner they may not access."""

    def __init__(
        self,
        caller_id: UUID,
        product_id: UUID | None = None,
        owner_id: UUID | None = None,
    ) -> None:
        target = product_id if product_id is not None else owner_id
        super().__init__(f"Access denied for {caller_id} on {target}")
        self.caller_id = caller_id
        self.product_id = product_id
        self.owner_id = owner_id
