"""Menu catalog entity models.

These models represent the stored records of the catalog: categories, items,
modifier groups and options, and item photos. Each converts to and from the
DynamoDB item format used by the repositories.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CatalogStatus(str, Enum):
    """Status values shared by categories, modifier groups and options."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class SelectionType(str, Enum):
    """How many options of a modifier group a guest may choose."""

    SINGLE = "single"
    MULTI = "multi"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _parse_timestamp(value: str | None) -> datetime:
    if value is None:
        return _utc_now()
    return datetime.fromisoformat(value)


class MenuCategory(BaseModel):
    """Menu category record.

    Categories are referenced by items but never owned by them.
    """

    id: str = Field(..., description="Unique identifier for the category")
    restaurant_id: str = Field(..., description="Restaurant this category belongs to")
    name: str = Field(..., description="Category name")
    status: CatalogStatus = Field(default=CatalogStatus.ACTIVE, description="Category status")
    display_order: int = Field(default=0, description="Display order of category")
    is_deleted: bool = Field(default=False, description="Soft-delete flag")
    created_at: datetime = Field(default_factory=_utc_now, description="Creation timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "status": self.status.value,
            "display_order": self.display_order,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuCategory":
        """Create MenuCategory from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuCategory: Parsed model instance
        """
        return cls(
            id=item["id"],
            restaurant_id=item["restaurant_id"],
            name=item["name"],
            status=CatalogStatus(item.get("status", CatalogStatus.ACTIVE.value)),
            display_order=int(item.get("display_order", 0)),
            is_deleted=bool(item.get("is_deleted", False)),
            created_at=_parse_timestamp(item.get("created_at")),
        )


class MenuItem(BaseModel):
    """Menu item record.

    The price is stored in cents. Items are soft-deleted only; the modifier
    group list holds references to independently owned groups.
    """

    id: str = Field(..., description="Unique identifier for the menu item")
    restaurant_id: str = Field(..., description="Restaurant this item belongs to")
    category_id: str = Field(..., description="Category this item belongs to")
    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price_cents: int = Field(..., description="Item price in cents", ge=1, le=99_999_900)
    prep_time_minutes: int = Field(default=0, description="Preparation time in minutes", ge=0)
    status: str = Field(..., description="Item status")
    is_chef_recommended: bool = Field(default=False, description="Chef recommendation flag")
    popularity_count: int = Field(default=0, description="Popularity counter", ge=0)
    is_deleted: bool = Field(default=False, description="Soft-delete flag")
    modifier_group_ids: list[str] = Field(
        default_factory=list, description="Ordered modifier group references"
    )
    created_at: datetime = Field(default_factory=_utc_now, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "category_id": self.category_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "prep_time_minutes": self.prep_time_minutes,
            "status": self.status,
            "is_chef_recommended": self.is_chef_recommended,
            "popularity_count": self.popularity_count,
            "is_deleted": self.is_deleted,
            "modifier_group_ids": list(self.modifier_group_ids),
            "created_at": self.created_at.isoformat(),
        }

        if self.description is not None:
            item["description"] = self.description

        if self.updated_at is not None:
            item["updated_at"] = self.updated_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "restaurant_id": item["restaurant_id"],
            "category_id": item["category_id"],
            "name": item["name"],
            "price_cents": int(item["price_cents"]),
            "prep_time_minutes": int(item.get("prep_time_minutes", 0)),
            "status": item["status"],
            "is_chef_recommended": bool(item.get("is_chef_recommended", False)),
            "popularity_count": int(item.get("popularity_count", 0)),
            "is_deleted": bool(item.get("is_deleted", False)),
            "modifier_group_ids": list(item.get("modifier_group_ids", [])),
            "created_at": _parse_timestamp(item.get("created_at")),
        }

        if "description" in item:
            data["description"] = item["description"]

        if "updated_at" in item:
            data["updated_at"] = datetime.fromisoformat(item["updated_at"])

        return cls(**data)


class ModifierGroup(BaseModel):
    """Modifier group record, e.g. "Size" or "Extra toppings"."""

    id: str = Field(..., description="Unique identifier for the group")
    restaurant_id: str = Field(..., description="Restaurant this group belongs to")
    name: str = Field(..., description="Group name, unique per restaurant")
    selection_type: SelectionType = Field(..., description="Single or multi selection")
    is_required: bool = Field(default=False, description="Whether a choice is required")
    min_selections: int = Field(default=0, description="Minimum options to choose", ge=0)
    max_selections: int = Field(default=0, description="Maximum options, 0 for no limit", ge=0)
    display_order: int = Field(default=0, description="Display order of group")
    status: CatalogStatus = Field(default=CatalogStatus.ACTIVE, description="Group status")
    created_at: datetime = Field(default_factory=_utc_now, description="Creation timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "selection_type": self.selection_type.value,
            "is_required": self.is_required,
            "min_selections": self.min_selections,
            "max_selections": self.max_selections,
            "display_order": self.display_order,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "ModifierGroup":
        """Create ModifierGroup from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            ModifierGroup: Parsed model instance
        """
        return cls(
            id=item["id"],
            restaurant_id=item["restaurant_id"],
            name=item["name"],
            selection_type=SelectionType(item["selection_type"]),
            is_required=bool(item.get("is_required", False)),
            min_selections=int(item.get("min_selections", 0)),
            max_selections=int(item.get("max_selections", 0)),
            display_order=int(item.get("display_order", 0)),
            status=CatalogStatus(item.get("status", CatalogStatus.ACTIVE.value)),
            created_at=_parse_timestamp(item.get("created_at")),
        )


class ModifierOption(BaseModel):
    """Modifier option record belonging to exactly one group."""

    id: str = Field(..., description="Unique identifier for the option")
    group_id: str = Field(..., description="Owning modifier group")
    name: str = Field(..., description="Option name, unique per group")
    price_adjustment_cents: int = Field(default=0, description="Price adjustment in cents", ge=0)
    display_order: int = Field(default=0, description="Display order within the group")
    status: CatalogStatus = Field(default=CatalogStatus.ACTIVE, description="Option status")
    created_at: datetime = Field(default_factory=_utc_now, description="Creation timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "id": self.id,
            "group_id": self.group_id,
            "name": self.name,
            "price_adjustment_cents": self.price_adjustment_cents,
            "display_order": self.display_order,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "ModifierOption":
        """Create ModifierOption from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            ModifierOption: Parsed model instance
        """
        return cls(
            id=item["id"],
            group_id=item["group_id"],
            name=item["name"],
            price_adjustment_cents=int(item.get("price_adjustment_cents", 0)),
            display_order=int(item.get("display_order", 0)),
            status=CatalogStatus(item.get("status", CatalogStatus.ACTIVE.value)),
            created_at=_parse_timestamp(item.get("created_at")),
        )


class MenuItemPhoto(BaseModel):
    """Photo attached to a menu item."""

    id: str = Field(..., description="Unique identifier for the photo")
    menu_item_id: str = Field(..., description="Item this photo belongs to")
    url: str = Field(..., description="Photo URL")
    is_primary: bool = Field(default=False, description="Whether this is the item's primary photo")
    created_at: datetime = Field(default_factory=_utc_now, description="Creation timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        return {
            "id": self.id,
            "menu_item_id": self.menu_item_id,
            "url": self.url,
            "is_primary": self.is_primary,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItemPhoto":
        """Create MenuItemPhoto from DynamoDB item."""
        return cls(
            id=item["id"],
            menu_item_id=item["menu_item_id"],
            url=item["url"],
            is_primary=bool(item.get("is_primary", False)),
            created_at=_parse_timestamp(item.get("created_at")),
        )
