"""Unit tests for CategoryGate."""

from unittest.mock import MagicMock

import pytest

from restaurant_menu_service.errors import InvalidReferenceError
from restaurant_menu_service.models.catalog_models import MenuCategory
from restaurant_menu_service.repositories.catalog_repositories import CategoryRepository
from restaurant_menu_service.services.category_gate import CategoryGate


@pytest.mark.unit
class TestCategoryGate:
    """Test suite for CategoryGate."""

    @pytest.fixture
    def mock_category_repo(self) -> MagicMock:
        """Create a mock CategoryRepository."""
        return MagicMock(spec=CategoryRepository)

    @pytest.fixture
    def gate(self, mock_category_repo: MagicMock) -> CategoryGate:
        """Create a CategoryGate with a mocked repository."""
        return CategoryGate(category_repository=mock_category_repo)

    @pytest.mark.asyncio
    async def test_active_category_passes(
        self,
        gate: CategoryGate,
        mock_category_repo: MagicMock,
        active_category: MenuCategory,
        mock_restaurant_id: str,
    ) -> None:
        """Test that an existing category is returned."""
        mock_category_repo.get_category.return_value = active_category

        category = await gate.ensure_active_category(mock_restaurant_id, active_category.id)

        assert category == active_category
        mock_category_repo.get_category.assert_called_once_with(
            mock_restaurant_id, active_category.id
        )

    @pytest.mark.asyncio
    async def test_inactive_status_still_passes(
        self,
        gate: CategoryGate,
        mock_category_repo: MagicMock,
        inactive_category: MenuCategory,
        mock_restaurant_id: str,
    ) -> None:
        """Test that only deletion, not status, blocks a reference."""
        mock_category_repo.get_category.return_value = inactive_category

        category = await gate.ensure_active_category(mock_restaurant_id, inactive_category.id)

        assert category.id == inactive_category.id

    @pytest.mark.asyncio
    async def test_missing_category_rejected(
        self, gate: CategoryGate, mock_category_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test that an unknown category is an invalid reference."""
        mock_category_repo.get_category.return_value = None

        with pytest.raises(InvalidReferenceError):
            await gate.ensure_active_category(mock_restaurant_id, "cat_missing")

    @pytest.mark.asyncio
    async def test_deleted_category_rejected(
        self,
        gate: CategoryGate,
        mock_category_repo: MagicMock,
        active_category: MenuCategory,
        mock_restaurant_id: str,
    ) -> None:
        """Test that a soft-deleted category is an invalid reference."""
        mock_category_repo.get_category.return_value = active_category.model_copy(
            update={"is_deleted": True}
        )

        with pytest.raises(InvalidReferenceError) as exc_info:
            await gate.ensure_active_category(mock_restaurant_id, active_category.id)

        assert active_category.id in exc_info.value.message
