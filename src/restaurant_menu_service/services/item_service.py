"""Item catalog service: menu item lifecycle, admin listing and composition."""

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from restaurant_menu_service.errors import (
    InvalidPriceError,
    InvalidReferenceError,
    NotFoundError,
)
from restaurant_menu_service.models.catalog_models import MenuCategory, MenuItem
from restaurant_menu_service.models.request_models import (
    CreateMenuItemRequest,
    ItemListQuery,
    ItemSortKey,
    SortOrder,
    UpdateMenuItemRequest,
)
from restaurant_menu_service.models.view_models import (
    ItemListPage,
    MenuItemDetail,
    MenuItemView,
    ModifierGroupAssignment,
)
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import record_catalog_mutation
from restaurant_menu_service.repositories.catalog_repositories import (
    CategoryRepository,
    MenuItemRepository,
)
from restaurant_menu_service.services.category_gate import CategoryGate
from restaurant_menu_service.services.modifier_service import ModifierService
from restaurant_menu_service.services.photo_service import PhotoService
from restaurant_menu_service.services.rejections import rejected
from restaurant_menu_service.utils.identifiers import is_valid_id, new_id
from restaurant_menu_service.utils.money import is_valid_item_price, to_minor_units
from restaurant_menu_service.utils.pagination import parse_paging

logger = logging.getLogger(__name__)

ITEM = "menu_item"

# Fields of UpdateMenuItemRequest that may be explicitly cleared with None
_NULLABLE_FIELDS = {"description"}


def _sort_newest(items: list[MenuItem], order: SortOrder) -> list[MenuItem]:
    return sorted(items, key=lambda i: i.created_at, reverse=True)


def _sort_price(items: list[MenuItem], order: SortOrder) -> list[MenuItem]:
    newest_first = _sort_newest(items, order)
    return sorted(newest_first, key=lambda i: i.price_cents, reverse=order != SortOrder.ASC)


def _sort_popularity(items: list[MenuItem], order: SortOrder) -> list[MenuItem]:
    newest_first = _sort_newest(items, order)
    return sorted(newest_first, key=lambda i: i.popularity_count, reverse=True)


ITEM_SORTS: dict[ItemSortKey, Callable[[list[MenuItem], SortOrder], list[MenuItem]]] = {
    ItemSortKey.NEWEST: _sort_newest,
    ItemSortKey.PRICE: _sort_price,
    ItemSortKey.POPULARITY: _sort_popularity,
}


def _item_price_cents(price: Decimal) -> int:
    cents = to_minor_units(price)
    if not is_valid_item_price(cents):
        raise rejected(ITEM, InvalidPriceError("Invalid price"))
    return cents


def normalize_group_ids(raw_group_ids: Sequence[Any] | None) -> list[str]:
    """Trim, drop empties, validate and de-duplicate modifier group ids.

    First occurrences keep their position.

    Args:
        raw_group_ids: Ids as received from the caller

    Returns:
        list: Normalized ids

    Raises:
        InvalidReferenceError: If any non-empty id is malformed
    """
    normalized: list[str] = []
    seen: set[str] = set()

    for raw in raw_group_ids or []:
        group_id = str(raw).strip()
        if not group_id:
            continue

        if not is_valid_id(group_id):
            raise rejected(ITEM, InvalidReferenceError(f"Invalid groupId: {group_id}"))

        if group_id not in seen:
            seen.add(group_id)
            normalized.append(group_id)

    return normalized


class ItemService:
    """Service owning the menu item lifecycle.

    Items are soft-deleted only. Every read and write first resolves the item
    through the repository's visible-item lookup, so deleted items behave as
    missing everywhere.
    """

    def __init__(
        self,
        item_repository: MenuItemRepository,
        category_repository: CategoryRepository,
        category_gate: CategoryGate,
        modifier_service: ModifierService,
        photo_service: PhotoService,
    ) -> None:
        """Initialize the ItemService.

        Args:
            item_repository: Repository for menu items
            category_repository: Repository used to read categories for listings
            category_gate: Validator for category references
            modifier_service: Modifier catalog, for group assignment and composition
            photo_service: Photo gallery, for primary photo URLs
        """
        self.item_repository = item_repository
        self.category_repository = category_repository
        self.category_gate = category_gate
        self.modifier_service = modifier_service
        self.photo_service = photo_service

    def _require_item(self, restaurant_id: str, item_id: str) -> MenuItem:
        item = self.item_repository.get_visible_item(restaurant_id, item_id)
        if item is None:
            raise rejected(ITEM, NotFoundError(f"Item {item_id} not found"))
        return item

    @traced("items.create")
    async def create(self, restaurant_id: str, request: CreateMenuItemRequest) -> MenuItemView:
        """Create a menu item.

        Args:
            restaurant_id: The restaurant scope
            request: Item fields with the price in major units

        Returns:
            The created item with price in major units

        Raises:
            InvalidReferenceError: If the category is missing or deleted
            InvalidPriceError: If the price is outside 0.01 to 999,999.00
        """
        category = await self.category_gate.ensure_active_category(
            restaurant_id, request.category_id
        )
        price_cents = _item_price_cents(request.price)

        item = MenuItem(
            id=new_id(),
            restaurant_id=restaurant_id,
            category_id=category.id,
            name=request.name.strip(),
            description=request.description,
            price_cents=price_cents,
            prep_time_minutes=request.prep_time_minutes or 0,
            status=request.status,
            is_chef_recommended=bool(request.is_chef_recommended),
            popularity_count=0,
            is_deleted=False,
            modifier_group_ids=[],
        )
        self.item_repository.save_item(item)

        record_catalog_mutation(ITEM, "create")
        logger.info(f"Created menu item {item.id} in category {category.id}")
        return MenuItemView.from_item(item)

    @traced("items.list_admin")
    async def list_admin(self, restaurant_id: str, query: ItemListQuery) -> ItemListPage:
        """List items for the admin console.

        Only items in active, non-deleted categories are listed. Filtering on
        a category that is not currently active yields an empty page.

        Args:
            restaurant_id: The restaurant scope
            query: Filters, sort key and raw pagination values

        Returns:
            One page of items with major-unit prices and primary photo URLs
        """
        paging = parse_paging(query.page, query.limit)

        active_categories = {
            category.id: category
            for category in self.category_repository.list_active_categories(restaurant_id)
        }

        if query.category_id and query.category_id not in active_categories:
            return ItemListPage(page=paging.page, limit=paging.limit, total=0, items=[])

        wanted_categories = {query.category_id} if query.category_id else set(active_categories)
        name_filter = query.name.lower() if query.name else None

        matching = [
            item
            for item in self.item_repository.list_visible_items(restaurant_id)
            if item.category_id in wanted_categories
            and (name_filter is None or name_filter in item.name.lower())
            and (query.status is None or item.status == query.status)
        ]

        ordered = ITEM_SORTS[query.sort](matching, query.order)
        page_items = ordered[paging.skip : paging.skip + paging.limit]

        primary_photos = await self.photo_service.primary_photo_urls(
            [item.id for item in page_items]
        )

        views = [
            self._to_view(
                item,
                active_categories.get(item.category_id),
                primary_photo=primary_photos.get(item.id),
                with_display_order=True,
            )
            for item in page_items
        ]

        return ItemListPage(page=paging.page, limit=paging.limit, total=len(matching), items=views)

    @staticmethod
    def _to_view(
        item: MenuItem,
        category: MenuCategory | None,
        primary_photo: str | None = None,
        with_display_order: bool = False,
    ) -> MenuItemView:
        extra: dict[str, Any] = {"primary_photo": primary_photo}
        if category is not None:
            extra["category_name"] = category.name
            extra["category_status"] = category.status
            if with_display_order:
                extra["category_display_order"] = category.display_order
        return MenuItemView.from_item(item, **extra)

    @traced("items.get_by_id")
    async def get_by_id(self, restaurant_id: str, item_id: str) -> MenuItemView:
        """Get an item with its category name and status populated.

        Raises:
            NotFoundError: If the item does not exist or is deleted
        """
        item = self._require_item(restaurant_id, item_id)
        category = self.category_repository.get_category(restaurant_id, item.category_id)
        return self._to_view(item, category)

    @traced("items.get_with_modifiers")
    async def get_item_with_modifiers(self, restaurant_id: str, item_id: str) -> MenuItemDetail:
        """Get an item composed with its active modifier groups and options.

        Inactive groups still referenced by the item are left out.

        Raises:
            NotFoundError: If the item does not exist or is deleted
        """
        view = await self.get_by_id(restaurant_id, item_id)
        groups = await self.modifier_service.get_groups_with_options(
            restaurant_id, view.modifier_group_ids
        )
        return MenuItemDetail(**view.model_dump(), modifier_groups=groups)

    @traced("items.update")
    async def update(
        self, restaurant_id: str, item_id: str, patch: UpdateMenuItemRequest
    ) -> MenuItemView:
        """Apply a partial update to an item.

        The category is re-validated only when it changes and the price bounds
        only when a price is supplied.

        Raises:
            NotFoundError: If the item does not exist or is deleted
            InvalidReferenceError: If the new category is missing or deleted
            InvalidPriceError: If the new price is out of bounds
        """
        item = self._require_item(restaurant_id, item_id)

        changes = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or field in _NULLABLE_FIELDS
        }

        if "category_id" in changes and changes["category_id"] != item.category_id:
            await self.category_gate.ensure_active_category(restaurant_id, changes["category_id"])
        if "price" in changes:
            changes["price_cents"] = _item_price_cents(changes.pop("price"))
        if "name" in changes:
            changes["name"] = changes["name"].strip()

        changes["updated_at"] = datetime.now(UTC)
        updated = item.model_copy(update=changes)
        self.item_repository.save_item(updated)

        record_catalog_mutation(ITEM, "update")
        logger.info(f"Updated menu item {item_id}: {sorted(changes)}")
        return MenuItemView.from_item(updated)

    @traced("items.soft_delete")
    async def soft_delete(self, restaurant_id: str, item_id: str) -> None:
        """Mark an item deleted. Deleted items are invisible from then on.

        Raises:
            NotFoundError: If the item does not exist or is already deleted
        """
        item = self._require_item(restaurant_id, item_id)
        self.item_repository.save_item(
            item.model_copy(update={"is_deleted": True, "updated_at": datetime.now(UTC)})
        )

        record_catalog_mutation(ITEM, "delete")
        logger.info(f"Soft-deleted menu item {item_id}")

    @traced("items.set_modifier_groups")
    async def set_modifier_groups(
        self, restaurant_id: str, item_id: str, raw_group_ids: Sequence[Any] | None
    ) -> ModifierGroupAssignment:
        """Replace the modifier groups assigned to an item.

        An empty list after normalization clears the assignment. Otherwise
        every id must name an active group of the restaurant; if one does not,
        nothing is written.

        Args:
            restaurant_id: The restaurant scope
            item_id: The item to update
            raw_group_ids: Group ids as received

        Returns:
            The stored assignment

        Raises:
            NotFoundError: If the item does not exist or is deleted
            InvalidReferenceError: If an id is malformed, unknown, foreign or inactive
        """
        item = self._require_item(restaurant_id, item_id)
        normalized = normalize_group_ids(raw_group_ids)

        if normalized:
            groups = await self.modifier_service.find_active_groups(restaurant_id, normalized)
            if len(groups) != len(normalized):
                raise rejected(
                    ITEM,
                    InvalidReferenceError("One or more modifier groups are invalid/inactive"),
                )

        updated_at = datetime.now(UTC)
        self.item_repository.save_item(
            item.model_copy(update={"modifier_group_ids": normalized, "updated_at": updated_at})
        )

        record_catalog_mutation(ITEM, "set_modifier_groups")
        logger.info(f"Assigned {len(normalized)} modifier groups to item {item_id}")
        return ModifierGroupAssignment(
            item_id=item_id, modifier_group_ids=normalized, updated_at=updated_at
        )
