"""DynamoDB repository classes for the menu catalog.

Each record set lives in its own table keyed by ``id``. Listing goes through
global secondary indexes (``restaurant_id-index``, ``group_id-index``,
``menu_item_id-index``); ordering and pagination happen in the services.

Unique names are enforced with name-claim records written to the same table
in one transaction as the entity. Claim records carry no index attributes,
so they never show up in index queries. A failed claim condition is raised
as DuplicateKeyError; every other DynamoDB failure is logged and re-raised.
"""

import logging
from collections.abc import Iterable
from typing import Any

from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_menu_service.models.catalog_models import (
    CatalogStatus,
    MenuCategory,
    MenuItem,
    MenuItemPhoto,
    ModifierGroup,
    ModifierOption,
)

logger = logging.getLogger(__name__)

# DynamoDB BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100

_serializer = TypeSerializer()


class DuplicateKeyError(Exception):
    """Raised when a write would violate a unique name constraint."""


def name_claim_id(scope_id: str, name: str) -> str:
    """Build the key of the record that reserves a name within a scope.

    Args:
        scope_id: Restaurant id for groups, group id for options
        name: The name being reserved

    Returns:
        str: Claim record id
    """
    return f"name#{scope_id}#{name}"


def _serialize(item: dict[str, Any]) -> dict[str, Any]:
    return {key: _serializer.serialize(value) for key, value in item.items()}


def _is_condition_failure(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code")
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons", [])
        return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)
    return False


class CatalogTable:
    """Shared table access for the catalog repositories."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def _get_raw(self, record_id: str) -> dict[str, Any] | None:
        try:
            response = self.table.get_item(Key={"id": record_id})
        except ClientError as e:
            logger.error(f"Failed to get {record_id} from {self.table_name}: {e}")
            raise

        return response.get("Item")

    def _query_all(self, **kwargs: Any) -> list[dict[str, Any]]:
        """Run a query and follow LastEvaluatedKey until all pages are read."""
        items: list[dict[str, Any]] = []

        try:
            while True:
                response = self.table.query(**kwargs)
                items.extend(response.get("Items", []))

                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key

        except ClientError as e:
            logger.error(f"Failed to query {self.table_name}: {e}")
            raise

    def _batch_get_raw(self, record_ids: list[str]) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []

        for start in range(0, len(record_ids), BATCH_GET_LIMIT):
            chunk = record_ids[start : start + BATCH_GET_LIMIT]
            request: dict[str, Any] = {
                self.table_name: {"Keys": [{"id": record_id} for record_id in chunk]}
            }

            try:
                while request:
                    response = self.dynamodb.batch_get_item(RequestItems=request)
                    items.extend(response.get("Responses", {}).get(self.table_name, []))
                    request = response.get("UnprocessedKeys") or {}

            except ClientError as e:
                logger.error(f"Failed to batch get from {self.table_name}: {e}")
                raise

        return items

    def _put_claim(self, claim_id: str, record_id: str) -> dict[str, Any]:
        return {
            "Put": {
                "TableName": self.table_name,
                "Item": _serialize({"id": claim_id, "claimed_by": record_id}),
                "ConditionExpression": "attribute_not_exists(id)",
            }
        }

    def _put_record(self, item: dict[str, Any]) -> dict[str, Any]:
        return {"Put": {"TableName": self.table_name, "Item": _serialize(item)}}

    def _delete_key(self, record_id: str) -> dict[str, Any]:
        return {"Delete": {"TableName": self.table_name, "Key": _serialize({"id": record_id})}}

    def _transact(self, operations: list[dict[str, Any]]) -> None:
        """Write several records atomically.

        Raises:
            DuplicateKeyError: If a name claim already exists
            ClientError: For any other DynamoDB failure
        """
        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=operations)

        except ClientError as e:
            if _is_condition_failure(e):
                raise DuplicateKeyError(f"Duplicate key in {self.table_name}") from e
            logger.error(f"Transaction on {self.table_name} failed: {e}")
            raise

    def _save_named(
        self,
        item: dict[str, Any],
        scope_id: str,
        name: str,
        previous_name: str | None = None,
        is_new: bool = False,
    ) -> None:
        operations = [self._put_record(item)]

        if is_new or previous_name != name:
            operations.append(self._put_claim(name_claim_id(scope_id, name), item["id"]))
        if not is_new and previous_name is not None and previous_name != name:
            operations.append(self._delete_key(name_claim_id(scope_id, previous_name)))

        self._transact(operations)


class CategoryRepository(CatalogTable):
    """Repository for menu categories.

    Category management lives outside this service; the catalog reads
    categories to validate references and filter listings.
    """

    def get_category(self, restaurant_id: str, category_id: str) -> MenuCategory | None:
        """Retrieve a category of the restaurant, deleted or not.

        Args:
            restaurant_id: Restaurant identifier
            category_id: Category identifier

        Returns:
            MenuCategory if found in the restaurant, None otherwise
        """
        item = self._get_raw(category_id)
        if item is None or item.get("restaurant_id") != restaurant_id:
            return None

        return MenuCategory.from_dynamodb_item(item)

    def list_active_categories(self, restaurant_id: str) -> list[MenuCategory]:
        """List categories that are active and not soft-deleted.

        Args:
            restaurant_id: Restaurant identifier

        Returns:
            list: Active categories (empty list if none found)
        """
        items = self._query_all(
            IndexName="restaurant_id-index",
            KeyConditionExpression=Key("restaurant_id").eq(restaurant_id),
            FilterExpression=Attr("is_deleted").eq(False)
            & Attr("status").eq(CatalogStatus.ACTIVE.value),
        )

        return [MenuCategory.from_dynamodb_item(item) for item in items]


class MenuItemRepository(CatalogTable):
    """Repository for menu items.

    Soft-deleted items and items of other restaurants are invisible to every
    read method; ``is_visible`` and ``visible_items_filter`` are the only
    places that rule is expressed.
    """

    @staticmethod
    def is_visible(item: dict[str, Any], restaurant_id: str) -> bool:
        """Check whether a stored item is visible in the restaurant scope."""
        return item.get("restaurant_id") == restaurant_id and not item.get("is_deleted", False)

    @staticmethod
    def visible_items_filter() -> Any:
        """Filter expression matching items that are not soft-deleted."""
        return Attr("is_deleted").eq(False)

    def get_visible_item(self, restaurant_id: str, item_id: str) -> MenuItem | None:
        """Retrieve a visible menu item.

        Args:
            restaurant_id: Restaurant identifier
            item_id: Item identifier

        Returns:
            MenuItem if found and not deleted, None otherwise
        """
        item = self._get_raw(item_id)
        if item is None or not self.is_visible(item, restaurant_id):
            return None

        return MenuItem.from_dynamodb_item(item)

    def list_visible_items(self, restaurant_id: str) -> list[MenuItem]:
        """List all visible items of a restaurant.

        Args:
            restaurant_id: Restaurant identifier

        Returns:
            list: Items that are not soft-deleted (empty list if none found)
        """
        items = self._query_all(
            IndexName="restaurant_id-index",
            KeyConditionExpression=Key("restaurant_id").eq(restaurant_id),
            FilterExpression=self.visible_items_filter(),
        )

        return [MenuItem.from_dynamodb_item(item) for item in items]

    def save_item(self, item: MenuItem) -> None:
        """Save or replace a menu item.

        Args:
            item: MenuItem to save
        """
        try:
            self.table.put_item(Item=item.to_dynamodb_item())

        except ClientError as e:
            logger.error(f"Failed to save menu item {item.id}: {e}")
            raise


class ModifierGroupRepository(CatalogTable):
    """Repository for modifier groups, names unique per restaurant."""

    def get_group(self, restaurant_id: str, group_id: str) -> ModifierGroup | None:
        """Retrieve a modifier group of the restaurant.

        Args:
            restaurant_id: Restaurant identifier
            group_id: Group identifier

        Returns:
            ModifierGroup if found, None otherwise
        """
        item = self._get_raw(group_id)
        if item is None or item.get("restaurant_id") != restaurant_id:
            return None

        return ModifierGroup.from_dynamodb_item(item)

    def list_groups(
        self, restaurant_id: str, status: CatalogStatus | None = None
    ) -> list[ModifierGroup]:
        """List modifier groups of a restaurant.

        Args:
            restaurant_id: Restaurant identifier
            status: Only return groups with this status when given

        Returns:
            list: Matching groups in no particular order
        """
        kwargs: dict[str, Any] = {
            "IndexName": "restaurant_id-index",
            "KeyConditionExpression": Key("restaurant_id").eq(restaurant_id),
        }
        if status is not None:
            kwargs["FilterExpression"] = Attr("status").eq(status.value)

        return [ModifierGroup.from_dynamodb_item(item) for item in self._query_all(**kwargs)]

    def get_groups_by_ids(
        self,
        restaurant_id: str,
        group_ids: Iterable[str],
        status: CatalogStatus | None = None,
    ) -> list[ModifierGroup]:
        """Fetch several groups at once.

        Ids that do not exist, belong to another restaurant or do not match
        the status are left out of the result.

        Args:
            restaurant_id: Restaurant identifier
            group_ids: Group identifiers to fetch
            status: Required status when given

        Returns:
            list: Matching groups in no particular order
        """
        unique_ids = list(dict.fromkeys(group_ids))
        if not unique_ids:
            return []

        groups = []
        for item in self._batch_get_raw(unique_ids):
            if item.get("restaurant_id") != restaurant_id:
                continue
            if status is not None and item.get("status") != status.value:
                continue
            groups.append(ModifierGroup.from_dynamodb_item(item))

        return groups

    def create_group(self, group: ModifierGroup) -> None:
        """Insert a new group and reserve its name.

        Raises:
            DuplicateKeyError: If the name is already used in the restaurant
        """
        self._save_named(group.to_dynamodb_item(), group.restaurant_id, group.name, is_new=True)

    def update_group(self, group: ModifierGroup, previous_name: str) -> None:
        """Replace a group, moving its name claim when the name changed.

        Raises:
            DuplicateKeyError: If the new name is already used in the restaurant
        """
        self._save_named(group.to_dynamodb_item(), group.restaurant_id, group.name, previous_name)

    def delete_group(self, group: ModifierGroup) -> None:
        """Delete a group together with its name claim."""
        self._transact(
            [
                self._delete_key(group.id),
                self._delete_key(name_claim_id(group.restaurant_id, group.name)),
            ]
        )


class ModifierOptionRepository(CatalogTable):
    """Repository for modifier options, names unique per group."""

    def get_option(self, option_id: str) -> ModifierOption | None:
        """Retrieve a modifier option by ID.

        Args:
            option_id: Option identifier

        Returns:
            ModifierOption if found, None otherwise
        """
        item = self._get_raw(option_id)
        if item is None or "group_id" not in item:
            return None

        return ModifierOption.from_dynamodb_item(item)

    def list_options(
        self, group_id: str, status: CatalogStatus | None = None
    ) -> list[ModifierOption]:
        """List options of a group.

        Args:
            group_id: Owning group identifier
            status: Only return options with this status when given

        Returns:
            list: Matching options in no particular order
        """
        kwargs: dict[str, Any] = {
            "IndexName": "group_id-index",
            "KeyConditionExpression": Key("group_id").eq(group_id),
        }
        if status is not None:
            kwargs["FilterExpression"] = Attr("status").eq(status.value)

        return [ModifierOption.from_dynamodb_item(item) for item in self._query_all(**kwargs)]

    def list_options_for_groups(
        self, group_ids: Iterable[str], status: CatalogStatus | None = None
    ) -> list[ModifierOption]:
        """List options belonging to any of the given groups."""
        options: list[ModifierOption] = []
        for group_id in dict.fromkeys(group_ids):
            options.extend(self.list_options(group_id, status))
        return options

    def get_max_display_order(self, group_id: str) -> int | None:
        """Highest display order used in a group, None for an empty group."""
        options = self.list_options(group_id)
        if not options:
            return None
        return max(option.display_order for option in options)

    def create_option(self, option: ModifierOption) -> None:
        """Insert a new option and reserve its name within the group.

        Raises:
            DuplicateKeyError: If the name is already used in the group
        """
        self._save_named(option.to_dynamodb_item(), option.group_id, option.name, is_new=True)

    def update_option(self, option: ModifierOption, previous_name: str) -> None:
        """Replace an option, moving its name claim when the name changed.

        Raises:
            DuplicateKeyError: If the new name is already used in the group
        """
        self._save_named(option.to_dynamodb_item(), option.group_id, option.name, previous_name)

    def delete_option(self, option: ModifierOption) -> None:
        """Delete an option together with its name claim."""
        self._transact(
            [
                self._delete_key(option.id),
                self._delete_key(name_claim_id(option.group_id, option.name)),
            ]
        )

    def delete_options_for_group(self, group_id: str) -> int:
        """Physically delete every option of a group.

        Args:
            group_id: Owning group identifier

        Returns:
            int: Number of options deleted
        """
        options = self.list_options(group_id)

        try:
            with self.table.batch_writer() as batch:
                for option in options:
                    batch.delete_item(Key={"id": option.id})
                    batch.delete_item(Key={"id": name_claim_id(group_id, option.name)})

        except ClientError as e:
            logger.error(f"Failed to delete options of group {group_id}: {e}")
            raise

        return len(options)


class PhotoRepository(CatalogTable):
    """Repository for menu item photos."""

    def list_photos(self, menu_item_id: str) -> list[MenuItemPhoto]:
        """List all photos of an item in no particular order."""
        items = self._query_all(
            IndexName="menu_item_id-index",
            KeyConditionExpression=Key("menu_item_id").eq(menu_item_id),
        )

        return [MenuItemPhoto.from_dynamodb_item(item) for item in items]

    def get_photo(self, menu_item_id: str, photo_id: str) -> MenuItemPhoto | None:
        """Retrieve a photo, scoped to its item.

        Args:
            menu_item_id: Item the photo must belong to
            photo_id: Photo identifier

        Returns:
            MenuItemPhoto if found on that item, None otherwise
        """
        item = self._get_raw(photo_id)
        if item is None or item.get("menu_item_id") != menu_item_id:
            return None

        return MenuItemPhoto.from_dynamodb_item(item)

    def get_primary_photo(self, menu_item_id: str) -> MenuItemPhoto | None:
        """Retrieve the primary photo of an item, if any."""
        items = self._query_all(
            IndexName="menu_item_id-index",
            KeyConditionExpression=Key("menu_item_id").eq(menu_item_id),
            FilterExpression=Attr("is_primary").eq(True),
        )

        if not items:
            return None
        return MenuItemPhoto.from_dynamodb_item(items[0])

    def get_primary_photo_urls(self, menu_item_ids: Iterable[str]) -> dict[str, str]:
        """Map item ids to the URL of their primary photo.

        Items without a primary photo are left out of the mapping.
        """
        urls: dict[str, str] = {}
        for menu_item_id in dict.fromkeys(menu_item_ids):
            photo = self.get_primary_photo(menu_item_id)
            if photo is not None:
                urls[menu_item_id] = photo.url
        return urls

    def add_photos(self, photos: list[MenuItemPhoto]) -> None:
        """Insert several photos.

        Args:
            photos: Photos to insert
        """
        try:
            with self.table.batch_writer() as batch:
                for photo in photos:
                    batch.put_item(Item=photo.to_dynamodb_item())

        except ClientError as e:
            logger.error(f"Failed to add photos: {e}")
            raise

    def delete_photo(self, photo_id: str) -> None:
        """Delete a photo by ID."""
        try:
            self.table.delete_item(Key={"id": photo_id})

        except ClientError as e:
            logger.error(f"Failed to delete photo {photo_id}: {e}")
            raise

    def set_primary_flag(self, photo_id: str, is_primary: bool) -> bool:
        """Set or clear the primary flag of a single existing photo.

        Args:
            photo_id: Photo identifier
            is_primary: New flag value

        Returns:
            bool: False if the photo no longer exists, True otherwise
        """
        try:
            self.table.update_item(
                Key={"id": photo_id},
                UpdateExpression="SET is_primary = :flag",
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeValues={":flag": is_primary},
            )
            return True

        except ClientError as e:
            if _is_condition_failure(e):
                logger.warning(f"Photo {photo_id} disappeared before its primary flag was set")
                return False
            logger.error(f"Failed to update primary flag of photo {photo_id}: {e}")
            raise
