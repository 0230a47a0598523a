"""Unit tests for ModifierService."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from restaurant_menu_service.errors import (
    DuplicateNameError,
    InvalidPriceError,
    InvalidRulesError,
    NotFoundError,
)
from restaurant_menu_service.models.catalog_models import (
    CatalogStatus,
    ModifierGroup,
    ModifierOption,
    SelectionType,
)
from restaurant_menu_service.models.request_models import (
    CreateModifierGroupRequest,
    CreateModifierOptionRequest,
    StatusFilter,
    UpdateModifierGroupRequest,
    UpdateModifierOptionRequest,
)
from restaurant_menu_service.repositories.catalog_repositories import (
    DuplicateKeyError,
    ModifierGroupRepository,
    ModifierOptionRepository,
)
from restaurant_menu_service.services.modifier_service import (
    ModifierService,
    validate_selection_rules,
)

NOW = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


@pytest.mark.unit
class TestValidateSelectionRules:
    """Test suite for the selection rule check."""

    def _group(self, **overrides: object) -> ModifierGroup:
        data = {
            "id": "grp_1",
            "restaurant_id": "rest_123",
            "name": "Toppings",
            "selection_type": SelectionType.MULTI,
            "is_required": True,
            "min_selections": 1,
            "max_selections": 0,
        }
        data.update(overrides)
        return ModifierGroup(**data)

    def test_single_selection_is_unconstrained(self) -> None:
        """Test that single-selection groups skip the rules."""
        validate_selection_rules(
            self._group(selection_type=SelectionType.SINGLE, min_selections=0, max_selections=0)
        )

    def test_optional_multi_is_unconstrained(self) -> None:
        """Test that optional groups skip the rules."""
        validate_selection_rules(self._group(is_required=False, min_selections=0))

    def test_required_multi_needs_min_selection(self) -> None:
        """Test that required multi-select groups need min >= 1."""
        with pytest.raises(InvalidRulesError) as exc_info:
            validate_selection_rules(self._group(min_selections=0))

        assert "minSelections" in exc_info.value.message

    def test_max_below_min_rejected(self) -> None:
        """Test that a max limit below min is rejected."""
        with pytest.raises(InvalidRulesError) as exc_info:
            validate_selection_rules(self._group(min_selections=3, max_selections=2))

        assert "maxSelections" in exc_info.value.message

    def test_zero_max_means_unlimited(self) -> None:
        """Test that max 0 is not compared with min."""
        validate_selection_rules(self._group(min_selections=5, max_selections=0))


@pytest.mark.unit
class TestModifierGroups:
    """Test suite for modifier group operations."""

    @pytest.fixture
    def mock_group_repo(self) -> MagicMock:
        """Create a mock ModifierGroupRepository."""
        return MagicMock(spec=ModifierGroupRepository)

    @pytest.fixture
    def mock_option_repo(self) -> MagicMock:
        """Create a mock ModifierOptionRepository."""
        return MagicMock(spec=ModifierOptionRepository)

    @pytest.fixture
    def service(self, mock_group_repo: MagicMock, mock_option_repo: MagicMock) -> ModifierService:
        """Create a ModifierService with mocked repositories."""
        return ModifierService(group_repository=mock_group_repo, option_repository=mock_option_repo)

    @pytest.mark.asyncio
    async def test_create_group_defaults(
        self, service: ModifierService, mock_group_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test creating a group with only the required fields."""
        group = await service.create_group(
            mock_restaurant_id,
            CreateModifierGroupRequest(name="  Size ", selection_type=SelectionType.SINGLE),
        )

        assert group.name == "Size"
        assert group.restaurant_id == mock_restaurant_id
        assert group.is_required is False
        assert group.min_selections == 0
        assert group.max_selections == 0
        assert group.status == CatalogStatus.ACTIVE
        mock_group_repo.create_group.assert_called_once_with(group)

    @pytest.mark.asyncio
    async def test_create_group_rule_violation_not_saved(
        self, service: ModifierService, mock_group_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test that a required multi-select group with min 0 is refused."""
        with pytest.raises(InvalidRulesError):
            await service.create_group(
                mock_restaurant_id,
                CreateModifierGroupRequest(
                    name="Toppings", selection_type=SelectionType.MULTI, is_required=True
                ),
            )

        mock_group_repo.create_group.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_group_duplicate_name(
        self, service: ModifierService, mock_group_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test that a name collision surfaces as DuplicateNameError."""
        mock_group_repo.create_group.side_effect = DuplicateKeyError("dup")

        with pytest.raises(DuplicateNameError):
            await service.create_group(
                mock_restaurant_id,
                CreateModifierGroupRequest(name="Size", selection_type=SelectionType.SINGLE),
            )

    @pytest.mark.asyncio
    async def test_get_group_not_found(
        self, service: ModifierService, mock_group_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test that a missing group raises NotFoundError."""
        mock_group_repo.get_group.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_group(mock_restaurant_id, "grp_missing")

    @pytest.mark.asyncio
    async def test_update_validates_merged_state(
        self,
        service: ModifierService,
        mock_group_repo: MagicMock,
        make_group: Callable[..., ModifierGroup],
        mock_restaurant_id: str,
    ) -> None:
        """Test that a patch valid alone is refused when the merged group is not."""
        mock_group_repo.get_group.return_value = make_group(
            selection_type=SelectionType.MULTI,
            is_required=True,
            min_selections=2,
            max_selections=3,
        )

        with pytest.raises(InvalidRulesError):
            await service.update_group(
                mock_restaurant_id, "grp_1", UpdateModifierGroupRequest(max_selections=1)
            )

        mock_group_repo.update_group.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_group_applies_only_set_fields(
        self,
        service: ModifierService,
        mock_group_repo: MagicMock,
        make_group: Callable[..., ModifierGroup],
        mock_restaurant_id: str,
    ) -> None:
        """Test a partial update that renames a group."""
        stored = make_group(display_order=4)
        mock_group_repo.get_group.return_value = stored

        updated = await service.update_group(
            mock_restaurant_id, stored.id, UpdateModifierGroupRequest(name=" Portion ")
        )

        assert updated.name == "Portion"
        assert updated.display_order == 4
        assert updated.selection_type == stored.selection_type
        mock_group_repo.update_group.assert_called_once_with(updated, previous_name="Size")

    @pytest.mark.asyncio
    async def test_update_group_duplicate_name(
        self,
        service: ModifierService,
        mock_group_repo: MagicMock,
        make_group: Callable[..., ModifierGroup],
        mock_restaurant_id: str,
    ) -> None:
        """Test that renaming onto an existing name is refused."""
        mock_group_repo.get_group.return_value = make_group()
        mock_group_repo.update_group.side_effect = DuplicateKeyError("dup")

        with pytest.raises(DuplicateNameError):
            await service.update_group(
                mock_restaurant_id, "grp_1", UpdateModifierGroupRequest(name="Extras")
            )

    @pytest.mark.asyncio
    async def test_delete_group_removes_options_first(
        self,
        service: ModifierService,
        mock_group_repo: MagicMock,
        mock_option_repo: MagicMock,
        make_group: Callable[..., ModifierGroup],
        mock_restaurant_id: str,
    ) -> None:
        """Test that options are deleted before their group."""
        group = make_group()
        mock_group_repo.get_group.return_value = group
        calls: list[str] = []
        mock_option_repo.delete_options_for_group.side_effect = (
            lambda group_id: calls.append("options") or 3
        )
        mock_group_repo.delete_group.side_effect = lambda g: calls.append("group")

        await service.delete_group(mock_restaurant_id, group.id)

        assert calls == ["options", "group"]
        mock_option_repo.delete_options_for_group.assert_called_once_with(group.id)
        mock_group_repo.delete_group.assert_called_once_with(group)

    @pytest.mark.asyncio
    async def test_delete_missing_group(
        self,
        service: ModifierService,
        mock_group_repo: MagicMock,
        mock_option_repo: MagicMock,
        mock_restaurant_id: str,
    ) -> None:
        """Test that deleting a missing group touches nothing."""
        mock_group_repo.get_group.return_value = None

        with pytest.raises(NotFoundError):
            await service.delete_group(mock_restaurant_id, "grp_missing")

        mock_option_repo.delete_options_for_group.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_groups_ordering_and_filter(
        self,
        service: ModifierService,
        mock_group_repo: MagicMock,
        make_group: Callable[..., ModifierGroup],
        mock_restaurant_id: str,
    ) -> None:
        """Test display order ascending with newest first on ties."""
        old_first = make_group("grp_old", minutes_old=10, display_order=0)
        new_first = make_group("grp_new", minutes_old=1, display_order=0)
        later = make_group("grp_later", minutes_old=20, display_order=1)
        mock_group_repo.list_groups.return_value = [later, old_first, new_first]

        groups = await service.list_groups(mock_restaurant_id, StatusFilter.ACTIVE)

        assert [g.id for g in groups] == ["grp_new", "grp_old", "grp_later"]
        mock_group_repo.list_groups.assert_called_once_with(
            mock_restaurant_id, CatalogStatus.ACTIVE
        )

    @pytest.mark.asyncio
    async def test_list_groups_all(
        self, service: ModifierService, mock_group_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test that the 'all' filter does not restrict status."""
        mock_group_repo.list_groups.return_value = []

        assert await service.list_groups(mock_restaurant_id) == []
        mock_group_repo.list_groups.assert_called_once_with(mock_restaurant_id, None)

    @pytest.mark.asyncio
    async def test_find_active_groups(
        self, service: ModifierService, mock_group_repo: MagicMock, mock_restaurant_id: str
    ) -> None:
        """Test that lookups are limited to active groups."""
        mock_group_repo.get_groups_by_ids.return_value = []

        await service.find_active_groups(mock_restaurant_id, ["grp_1"])

        mock_group_repo.get_groups_by_ids.assert_called_once_with(
            mock_restaurant_id, ["grp_1"], status=CatalogStatus.ACTIVE
        )


@pytest.mark.unit
class TestModifierOptions:
    """Test suite for modifier option operations."""

    @pytest.fixture
    def group(self, make_group: Callable[..., ModifierGroup]) -> ModifierGroup:
        """The group owning the options."""
        return make_group()

    @pytest.fixture
    def store(self) -> dict[str, ModifierOption]:
        """In-memory option table."""
        return {}

    @pytest.fixture
    def mock_group_repo(self, group: ModifierGroup) -> MagicMock:
        """Create a mock ModifierGroupRepository that knows one group."""
        repo = MagicMock(spec=ModifierGroupRepository)
        repo.get_group.side_effect = lambda restaurant_id, group_id: (
            group if restaurant_id == group.restaurant_id and group_id == group.id else None
        )
        return repo

    @pytest.fixture
    def mock_option_repo(self, store: dict[str, ModifierOption]) -> MagicMock:
        """Create a mock ModifierOptionRepository backed by the store."""
        repo = MagicMock(spec=ModifierOptionRepository)

        def max_order(group_id: str) -> int | None:
            orders = [o.display_order for o in store.values() if o.group_id == group_id]
            return max(orders) if orders else None

        repo.get_option.side_effect = store.get
        repo.get_max_display_order.side_effect = max_order
        repo.create_option.side_effect = lambda option: store.__setitem__(option.id, option)
        repo.delete_option.side_effect = lambda option: store.pop(option.id)
        repo.list_options.side_effect = lambda group_id, status=None: [
            o
            for o in store.values()
            if o.group_id == group_id and (status is None or o.status == status)
        ]
        return repo

    @pytest.fixture
    def service(self, mock_group_repo: MagicMock, mock_option_repo: MagicMock) -> ModifierService:
        """Create a ModifierService with mocked repositories."""
        return ModifierService(group_repository=mock_group_repo, option_repository=mock_option_repo)

    @pytest.mark.asyncio
    async def test_display_order_appends_after_highest(
        self, service: ModifierService, group: ModifierGroup, mock_restaurant_id: str
    ) -> None:
        """Test that omitted display orders follow the current highest one."""
        first = await service.create_option(
            mock_restaurant_id, CreateModifierOptionRequest(group_id=group.id, name="Small")
        )
        second = await service.create_option(
            mock_restaurant_id, CreateModifierOptionRequest(group_id=group.id, name="Medium")
        )
        await service.delete_option(mock_restaurant_id, first.id)
        third = await service.create_option(
            mock_restaurant_id, CreateModifierOptionRequest(group_id=group.id, name="Large")
        )

        assert first.display_order == 0
        assert second.display_order == 1
        assert third.display_order == 2

    @pytest.mark.asyncio
    async def test_create_option_price_and_defaults(
        self, service: ModifierService, group: ModifierGroup, mock_restaurant_id: str
    ) -> None:
        """Test price conversion and default status."""
        option = await service.create_option(
            mock_restaurant_id,
            CreateModifierOptionRequest(
                group_id=group.id, name=" Bacon ", price_adjustment=Decimal("1.505")
            ),
        )

        assert option.name == "Bacon"
        assert option.price_adjustment_cents == 151
        assert option.price_adjustment == Decimal("1.51")
        assert option.status == CatalogStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_create_option_without_price(
        self, service: ModifierService, group: ModifierGroup, mock_restaurant_id: str
    ) -> None:
        """Test that a missing price adjustment means no surcharge."""
        option = await service.create_option(
            mock_restaurant_id, CreateModifierOptionRequest(group_id=group.id, name="Plain")
        )

        assert option.price_adjustment_cents == 0

    @pytest.mark.asyncio
    async def test_create_option_negative_price(
        self,
        service: ModifierService,
        group: ModifierGroup,
        mock_option_repo: MagicMock,
        mock_restaurant_id: str,
    ) -> None:
        """Test that negative adjustments are refused."""
        with pytest.raises(InvalidPriceError):
            await service.create_option(
                mock_restaurant_id,
                CreateModifierOptionRequest(
                    group_id=group.id, name="Discount", price_adjustment=Decimal("-0.50")
                ),
            )

        mock_option_repo.create_option.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_option_unknown_group(
        self, service: ModifierService, mock_restaurant_id: str
    ) -> None:
        """Test that options need an existing group."""
        with pytest.raises(NotFoundError):
            await service.create_option(
                mock_restaurant_id, CreateModifierOptionRequest(group_id="grp_x", name="Small")
            )

    @pytest.mark.asyncio
    async def test_create_option_duplicate_name(
        self,
        service: ModifierService,
        group: ModifierGroup,
        mock_option_repo: MagicMock,
        mock_restaurant_id: str,
    ) -> None:
        """Test that name collisions within a group are refused."""
        mock_option_repo.create_option.side_effect = DuplicateKeyError("dup")

        with pytest.raises(DuplicateNameError):
            await service.create_option(
                mock_restaurant_id, CreateModifierOptionRequest(group_id=group.id, name="Small")
            )

    @pytest.mark.asyncio
    async def test_update_option_partial(
        self,
        service: ModifierService,
        group: ModifierGroup,
        store: dict[str, ModifierOption],
        mock_option_repo: MagicMock,
        mock_restaurant_id: str,
    ) -> None:
        """Test that only supplied fields change."""
        store["opt_1"] = ModifierOption(
            id="opt_1", group_id=group.id, name="Cheese", price_adjustment_cents=100, display_order=2
        )

        updated = await service.update_option(
            mock_restaurant_id, "opt_1", UpdateModifierOptionRequest(price_adjustment=Decimal("2"))
        )

        assert updated.price_adjustment_cents == 200
        assert updated.name == "Cheese"
        assert updated.display_order == 2
        mock_option_repo.update_option.assert_called_once()
        assert mock_option_repo.update_option.call_args.kwargs["previous_name"] == "Cheese"

    @pytest.mark.asyncio
    async def test_option_of_other_restaurant_not_found(
        self,
        service: ModifierService,
        group: ModifierGroup,
        store: dict[str, ModifierOption],
    ) -> None:
        """Test that options are only reachable through their restaurant."""
        store["opt_1"] = ModifierOption(id="opt_1", group_id=group.id, name="Cheese")

        with pytest.raises(NotFoundError):
            await service.delete_option("rest_other", "opt_1")

        assert "opt_1" in store

    @pytest.mark.asyncio
    async def test_list_options_ordering(
        self,
        service: ModifierService,
        group: ModifierGroup,
        store: dict[str, ModifierOption],
        mock_restaurant_id: str,
    ) -> None:
        """Test display order ascending with oldest first on ties."""
        store["opt_b"] = ModifierOption(
            id="opt_b", group_id=group.id, name="B", display_order=1, created_at=NOW
        )
        store["opt_a"] = ModifierOption(
            id="opt_a",
            group_id=group.id,
            name="A",
            display_order=1,
            created_at=NOW - timedelta(minutes=5),
        )
        store["opt_c"] = ModifierOption(
            id="opt_c", group_id=group.id, name="C", display_order=0, created_at=NOW
        )
        store["opt_d"] = ModifierOption(
            id="opt_d",
            group_id=group.id,
            name="D",
            display_order=0,
            status=CatalogStatus.INACTIVE,
            created_at=NOW,
        )

        options = await service.list_options(mock_restaurant_id, group.id, StatusFilter.ACTIVE)

        assert [o.id for o in options] == ["opt_c", "opt_a", "opt_b"]


@pytest.mark.unit
class TestGroupsWithOptions:
    """Test suite for composing groups with their options."""

    @pytest.mark.asyncio
    async def test_composes_active_groups_and_options(
        self, make_group: Callable[..., ModifierGroup], mock_restaurant_id: str
    ) -> None:
        """Test ordering and grouping of the composed result."""
        group_repo = MagicMock(spec=ModifierGroupRepository)
        option_repo = MagicMock(spec=ModifierOptionRepository)
        size = make_group("grp_size", display_order=1)
        sauce = make_group("grp_sauce", name="Sauce", display_order=0)
        group_repo.get_groups_by_ids.return_value = [size, sauce]
        option_repo.list_options_for_groups.return_value = [
            ModifierOption(id="opt_2", group_id="grp_size", name="Large", display_order=1),
            ModifierOption(id="opt_1", group_id="grp_size", name="Small", display_order=0),
        ]
        service = ModifierService(group_repository=group_repo, option_repository=option_repo)

        groups = await service.get_groups_with_options(
            mock_restaurant_id, ["grp_size", "grp_sauce", "grp_inactive"]
        )

        assert [g.id for g in groups] == ["grp_sauce", "grp_size"]
        assert groups[0].options == []
        assert [o.id for o in groups[1].options] == ["opt_1", "opt_2"]
        group_repo.get_groups_by_ids.assert_called_once_with(
            mock_restaurant_id,
            ["grp_size", "grp_sauce", "grp_inactive"],
            status=CatalogStatus.ACTIVE,
        )
        option_repo.list_options_for_groups.assert_called_once_with(
            ["grp_sauce", "grp_size"], status=CatalogStatus.ACTIVE
        )

    @pytest.mark.asyncio
    async def test_no_group_ids(self, mock_restaurant_id: str) -> None:
        """Test that an item without groups needs no lookups."""
        group_repo = MagicMock(spec=ModifierGroupRepository)
        service = ModifierService(
            group_repository=group_repo,
            option_repository=MagicMock(spec=ModifierOptionRepository),
        )

        assert await service.get_groups_with_options(mock_restaurant_id, []) == []
        group_repo.get_groups_by_ids.assert_not_called()
