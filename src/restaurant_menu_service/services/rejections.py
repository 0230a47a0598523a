"""Shared bookkeeping for operations rejected with a domain error."""

import logging
from typing import TypeVar

from restaurant_menu_service.errors import CatalogError
from restaurant_menu_service.observability.metrics import record_catalog_rejection

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=CatalogError)


def rejected(entity: str, error: E) -> E:
    """Log and count a domain error, then hand it back to be raised.

    Example:
        raise rejected("menu_item", NotFoundError("Item not found"))
    """
    logger.warning(f"Rejected {entity} operation: {type(error).__name__}: {error.message}")
    record_catalog_rejection(entity, type(error).__name__)
    return error
