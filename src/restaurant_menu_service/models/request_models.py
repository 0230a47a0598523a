"""Input models for catalog operations.

Update models are partial: every field is optional and only the fields a
caller actually set (``model_dump(exclude_unset=True)``) are applied.
"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from restaurant_menu_service.models.catalog_models import CatalogStatus, SelectionType


class StatusFilter(str, Enum):
    """Status filter for modifier group and option listings."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ALL = "all"


class ItemSortKey(str, Enum):
    """Supported sort keys for the admin item listing."""

    NEWEST = "newest"
    PRICE = "price"
    POPULARITY = "popularity"


class SortOrder(str, Enum):
    """Sort direction, only consulted for price sorting."""

    ASC = "asc"
    DESC = "desc"


class CreateMenuItemRequest(BaseModel):
    """Fields accepted when creating a menu item."""

    category_id: str = Field(..., description="Category the item belongs to")
    name: str = Field(..., min_length=1, description="Item name")
    description: str | None = Field(None, description="Item description")
    price: Decimal = Field(..., description="Price in major units")
    prep_time_minutes: int | None = Field(None, ge=0, description="Preparation time in minutes")
    status: str = Field(..., min_length=1, description="Item status")
    is_chef_recommended: bool | None = Field(None, description="Chef recommendation flag")


class UpdateMenuItemRequest(BaseModel):
    """Partial update of a menu item."""

    category_id: str | None = None
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    price: Decimal | None = None
    prep_time_minutes: int | None = Field(None, ge=0)
    status: str | None = Field(None, min_length=1)
    is_chef_recommended: bool | None = None


class ItemListQuery(BaseModel):
    """Admin listing query.

    Page and limit are kept raw and normalized by the pagination helper.
    Sort keys outside ItemSortKey are rejected at construction.
    """

    page: Any = None
    limit: Any = None
    name: str | None = None
    status: str | None = None
    category_id: str | None = None
    sort: ItemSortKey = ItemSortKey.NEWEST
    order: SortOrder = SortOrder.DESC


class CreateModifierGroupRequest(BaseModel):
    """Fields accepted when creating a modifier group."""

    name: str = Field(..., min_length=1, description="Group name")
    selection_type: SelectionType = Field(..., description="Single or multi selection")
    is_required: bool | None = None
    min_selections: int | None = Field(None, ge=0)
    max_selections: int | None = Field(None, ge=0)
    display_order: int | None = None
    status: CatalogStatus | None = None


class UpdateModifierGroupRequest(BaseModel):
    """Partial update of a modifier group."""

    name: str | None = Field(None, min_length=1)
    selection_type: SelectionType | None = None
    is_required: bool | None = None
    min_selections: int | None = Field(None, ge=0)
    max_selections: int | None = Field(None, ge=0)
    display_order: int | None = None
    status: CatalogStatus | None = None


class CreateModifierOptionRequest(BaseModel):
    """Fields accepted when creating a modifier option."""

    group_id: str = Field(..., description="Owning modifier group")
    name: str = Field(..., min_length=1, description="Option name")
    price_adjustment: Decimal | None = Field(None, description="Price adjustment in major units")
    display_order: int | None = None
    status: CatalogStatus | None = None


class UpdateModifierOptionRequest(BaseModel):
    """Partial update of a modifier option."""

    name: str | None = Field(None, min_length=1)
    price_adjustment: Decimal | None = None
    display_order: int | None = None
    status: CatalogStatus | None = None
