"""Validation of category references."""

from restaurant_menu_service.errors import InvalidReferenceError
from restaurant_menu_service.models.catalog_models import MenuCategory
from restaurant_menu_service.observability import traced
from restaurant_menu_service.repositories.catalog_repositories import CategoryRepository
from restaurant_menu_service.services.rejections import rejected


class CategoryGate:
    """Checks that a referenced category exists and is not soft-deleted.

    The category's own status is not checked here; inactive categories only
    hide their items from the admin listing.
    """

    def __init__(self, category_repository: CategoryRepository) -> None:
        """Initialize the CategoryGate.

        Args:
            category_repository: Repository for reading categories
        """
        self.category_repository = category_repository

    @traced("categories.ensure_active")
    async def ensure_active_category(self, restaurant_id: str, category_id: str) -> MenuCategory:
        """Resolve a category reference or reject it.

        Args:
            restaurant_id: The restaurant scope
            category_id: The referenced category

        Returns:
            The referenced MenuCategory

        Raises:
            InvalidReferenceError: If the category is missing, foreign or deleted
        """
        category = self.category_repository.get_category(restaurant_id, category_id)
        if category is None or category.is_deleted:
            raise rejected(
                "menu_category", InvalidReferenceError(f"Category {category_id} does not exist")
            )

        return category
