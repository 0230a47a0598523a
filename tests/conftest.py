"""Shared pytest fixtures and configuration for all tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from restaurant_menu_service.models.catalog_models import (
    CatalogStatus,
    MenuCategory,
    MenuItem,
    ModifierGroup,
    SelectionType,
)

RESTAURANT_ID = "rest_123456"

CATEGORY_ID = "6f1c7c1e-1f0b-4a53-9d36-0c6f2b7a1a01"
INACTIVE_CATEGORY_ID = "6f1c7c1e-1f0b-4a53-9d36-0c6f2b7a1a02"
ITEM_ID = "3b2e9d4a-5c61-4f0e-8a7b-2d9c1e0f3a11"
GROUP_A_ID = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c01"

BASE_TIME = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


@pytest.fixture
def mock_restaurant_id() -> str:
    """Fixture providing a standard test restaurant ID."""
    return RESTAURANT_ID


@pytest.fixture
def active_category() -> MenuCategory:
    """An active, non-deleted category."""
    return MenuCategory(
        id=CATEGORY_ID,
        restaurant_id=RESTAURANT_ID,
        name="Burgers",
        status=CatalogStatus.ACTIVE,
        display_order=1,
        created_at=BASE_TIME,
    )


@pytest.fixture
def inactive_category() -> MenuCategory:
    """An inactive category whose items are hidden from the admin listing."""
    return MenuCategory(
        id=INACTIVE_CATEGORY_ID,
        restaurant_id=RESTAURANT_ID,
        name="Seasonal",
        status=CatalogStatus.INACTIVE,
        display_order=2,
        created_at=BASE_TIME,
    )


@pytest.fixture
def make_item() -> Callable[..., MenuItem]:
    """Factory for menu items; minutes_old orders them by creation time."""

    def _make(item_id: str = ITEM_ID, minutes_old: int = 0, **overrides: Any) -> MenuItem:
        data: dict[str, Any] = {
            "id": item_id,
            "restaurant_id": RESTAURANT_ID,
            "category_id": CATEGORY_ID,
            "name": "Cheeseburger",
            "description": "Classic beef cheeseburger",
            "price_cents": 1299,
            "status": "available",
            "created_at": BASE_TIME - timedelta(minutes=minutes_old),
        }
        data.update(overrides)
        return MenuItem(**data)

    return _make


@pytest.fixture
def make_group() -> Callable[..., ModifierGroup]:
    """Factory for modifier groups."""

    def _make(group_id: str = GROUP_A_ID, minutes_old: int = 0, **overrides: Any) -> ModifierGroup:
        data: dict[str, Any] = {
            "id": group_id,
            "restaurant_id": RESTAURANT_ID,
            "name": "Size",
            "selection_type": SelectionType.SINGLE,
            "created_at": BASE_TIME - timedelta(minutes=minutes_old),
        }
        data.update(overrides)
        return ModifierGroup(**data)

    return _make
