"""Read models returned by catalog operations.

Views surface prices in major units next to the stored cent values.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from restaurant_menu_service.models.catalog_models import (
    CatalogStatus,
    MenuItem,
    ModifierGroup,
    ModifierOption,
)
from restaurant_menu_service.utils.money import to_major_units


class MenuItemView(MenuItem):
    """Menu item with price in major units and denormalized references."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    price: Decimal = Field(..., description="Item price in major units")
    category_name: str | None = Field(None, description="Name of the item's category")
    category_status: CatalogStatus | None = Field(None, description="Status of the item's category")
    category_display_order: int | None = Field(
        None, description="Display order of the item's category"
    )
    primary_photo: str | None = Field(None, description="URL of the primary photo")

    @classmethod
    def from_item(cls, item: MenuItem, **extra: object) -> "MenuItemView":
        """Build a view from a stored item.

        Args:
            item: Stored menu item
            **extra: Denormalized fields (category_name, primary_photo, ...)

        Returns:
            MenuItemView: Item with major-unit price
        """
        return cls(**item.model_dump(), price=to_major_units(item.price_cents), **extra)


class ItemListPage(BaseModel):
    """One page of the admin item listing."""

    page: int
    limit: int
    total: int
    items: list[MenuItemView]


class ModifierOptionView(ModifierOption):
    """Modifier option with price adjustment in major units."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    price_adjustment: Decimal = Field(..., description="Price adjustment in major units")

    @classmethod
    def from_option(cls, option: ModifierOption) -> "ModifierOptionView":
        """Build a view from a stored option."""
        return cls(
            **option.model_dump(),
            price_adjustment=to_major_units(option.price_adjustment_cents),
        )


class ModifierGroupWithOptions(ModifierGroup):
    """Active modifier group populated with its active options."""

    options: list[ModifierOptionView] = Field(default_factory=list)


class MenuItemDetail(MenuItemView):
    """Menu item view composed with its modifier groups."""

    modifier_groups: list[ModifierGroupWithOptions] = Field(default_factory=list)


class ModifierGroupAssignment(BaseModel):
    """Result of assigning modifier groups to an item."""

    item_id: str
    modifier_group_ids: list[str]
    updated_at: datetime | None = None
