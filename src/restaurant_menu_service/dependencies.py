"""Shared dependency factory for the catalog services.

Dependencies are created once per process and reused, so a request layer
(or a Lambda container) pays for client construction only on cold start.
"""

import logging
import os
from typing import Any

import boto3

from restaurant_menu_service.observability import configure_logging, setup_observability
from restaurant_menu_service.repositories.catalog_repositories import (
    CategoryRepository,
    MenuItemRepository,
    ModifierGroupRepository,
    ModifierOptionRepository,
    PhotoRepository,
)
from restaurant_menu_service.services.category_gate import CategoryGate
from restaurant_menu_service.services.item_service import ItemService
from restaurant_menu_service.services.modifier_service import ModifierService
from restaurant_menu_service.services.photo_service import PhotoService

logger = logging.getLogger(__name__)

DEFAULT_RESTAURANT_ID = "default-restaurant"

# Module-level caches for container reuse
_dynamodb_resource: Any | None = None
_modifier_service: ModifierService | None = None
_photo_service: PhotoService | None = None
_item_service: ItemService | None = None


def get_restaurant_id() -> str:
    """Restaurant scope configured for this deployment."""
    return os.getenv("RESTAURANT_ID", DEFAULT_RESTAURANT_ID)


def get_dynamodb_resource() -> Any:
    """Create or retrieve cached DynamoDB resource.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    global _dynamodb_resource

    if _dynamodb_resource is not None:
        return _dynamodb_resource

    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB - use environment variables
        access_key = os.getenv("AWS_ACCESS_KEY_ID")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY")
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        _dynamodb_resource = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        _dynamodb_resource = boto3.resource("dynamodb", region_name=region)

    return _dynamodb_resource


def _table_name(env_var: str, default: str) -> str:
    return os.getenv(env_var, default)


def create_item_repository() -> MenuItemRepository:
    """Build the menu item repository from the environment."""
    return MenuItemRepository(
        dynamodb_resource=get_dynamodb_resource(),
        table_name=_table_name("DYNAMODB_ITEMS_TABLE", "menu-items"),
    )


def create_category_repository() -> CategoryRepository:
    """Build the category repository from the environment."""
    return CategoryRepository(
        dynamodb_resource=get_dynamodb_resource(),
        table_name=_table_name("DYNAMODB_CATEGORIES_TABLE", "menu-categories"),
    )


def get_modifier_service() -> ModifierService:
    """Create or retrieve cached modifier service.

    Returns:
        Configured ModifierService instance
    """
    global _modifier_service

    if _modifier_service is not None:
        return _modifier_service

    dynamodb_resource = get_dynamodb_resource()

    groups_table = _table_name("DYNAMODB_MODIFIER_GROUPS_TABLE", "menu-modifier-groups")
    options_table = _table_name("DYNAMODB_MODIFIER_OPTIONS_TABLE", "menu-modifier-options")

    _modifier_service = ModifierService(
        group_repository=ModifierGroupRepository(
            dynamodb_resource=dynamodb_resource, table_name=groups_table
        ),
        option_repository=ModifierOptionRepository(
            dynamodb_resource=dynamodb_resource, table_name=options_table
        ),
    )

    logger.info(f"Modifier service initialized - groups: {groups_table}, options: {options_table}")
    return _modifier_service


def get_photo_service() -> PhotoService:
    """Create or retrieve cached photo service.

    Returns:
        Configured PhotoService instance
    """
    global _photo_service

    if _photo_service is not None:
        return _photo_service

    photos_table = _table_name("DYNAMODB_PHOTOS_TABLE", "menu-item-photos")

    _photo_service = PhotoService(
        photo_repository=PhotoRepository(
            dynamodb_resource=get_dynamodb_resource(), table_name=photos_table
        ),
        item_repository=create_item_repository(),
    )

    logger.info(f"Photo service initialized - photos: {photos_table}")
    return _photo_service


def get_item_service() -> ItemService:
    """Create or retrieve cached item service.

    Returns:
        Configured ItemService instance
    """
    global _item_service

    if _item_service is not None:
        return _item_service

    category_repository = create_category_repository()

    _item_service = ItemService(
        item_repository=create_item_repository(),
        category_repository=category_repository,
        category_gate=CategoryGate(category_repository=category_repository),
        modifier_service=get_modifier_service(),
        photo_service=get_photo_service(),
    )

    logger.info("Item service initialized")
    return _item_service


def initialize_environment() -> None:
    """Initialize logging and observability.

    Should be called once at process start.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)
    setup_observability()

    logger.info(f"Menu catalog environment initialized for restaurant {get_restaurant_id()}")
