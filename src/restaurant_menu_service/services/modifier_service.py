"""Modifier catalog service: groups, options and their selection rules."""

import logging
from collections.abc import Sequence
from decimal import Decimal

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
from restaurant_menu_service.models.view_models import (
    ModifierGroupWithOptions,
    ModifierOptionView,
)
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import (
    record_cascade_delete,
    record_catalog_mutation,
)
from restaurant_menu_service.repositories.catalog_repositories import (
    DuplicateKeyError,
    ModifierGroupRepository,
    ModifierOptionRepository,
)
from restaurant_menu_service.services.rejections import rejected
from restaurant_menu_service.utils.identifiers import new_id
from restaurant_menu_service.utils.money import to_minor_units

logger = logging.getLogger(__name__)

GROUP = "modifier_group"
OPTION = "modifier_option"


def validate_selection_rules(group: ModifierGroup) -> None:
    """Check the selection constraints of a complete group state.

    Used for new groups and for the candidate state of an update alike.
    Single-selection groups are not constrained.

    Args:
        group: The group state to check

    Raises:
        InvalidRulesError: If a required multi-select group has min < 1, or a
            max limit lower than its min
    """
    if group.selection_type == SelectionType.SINGLE or not group.is_required:
        return

    if group.min_selections < 1:
        raise rejected(
            GROUP,
            InvalidRulesError("minSelections must be >= 1 when required for multi-select"),
        )

    if group.max_selections > 0 and group.max_selections < group.min_selections:
        raise rejected(GROUP, InvalidRulesError("maxSelections must be >= minSelections"))


def _status_or_none(status_filter: StatusFilter) -> CatalogStatus | None:
    if status_filter == StatusFilter.ALL:
        return None
    return CatalogStatus(status_filter.value)


def _sort_groups(groups: list[ModifierGroup]) -> list[ModifierGroup]:
    # display order ascending, newest first within the same order
    newest_first = sorted(groups, key=lambda g: g.created_at, reverse=True)
    return sorted(newest_first, key=lambda g: g.display_order)


def _sort_options(options: list[ModifierOption]) -> list[ModifierOption]:
    return sorted(options, key=lambda o: (o.display_order, o.created_at))


def _option_price_cents(price_adjustment: Decimal) -> int:
    cents = to_minor_units(price_adjustment)
    if cents < 0:
        raise rejected(OPTION, InvalidPriceError("priceAdjustment must be >= 0"))
    return cents


class ModifierService:
    """Service owning the modifier group and option lifecycle.

    Groups are shared by reference between items; options belong to exactly
    one group and are deleted with it.
    """

    def __init__(
        self,
        group_repository: ModifierGroupRepository,
        option_repository: ModifierOptionRepository,
    ) -> None:
        """Initialize the ModifierService.

        Args:
            group_repository: Repository for modifier groups
            option_repository: Repository for modifier options
        """
        self.group_repository = group_repository
        self.option_repository = option_repository

    def _require_group(self, restaurant_id: str, group_id: str) -> ModifierGroup:
        group = self.group_repository.get_group(restaurant_id, group_id)
        if group is None:
            raise rejected(GROUP, NotFoundError(f"Group {group_id} not found"))
        return group

    def _require_option(self, restaurant_id: str, option_id: str) -> ModifierOption:
        option = self.option_repository.get_option(option_id)
        # options are only visible through a group of the restaurant
        if option is None or self.group_repository.get_group(restaurant_id, option.group_id) is None:
            raise rejected(OPTION, NotFoundError(f"Option {option_id} not found"))
        return option

    @traced("modifiers.create_group")
    async def create_group(
        self, restaurant_id: str, request: CreateModifierGroupRequest
    ) -> ModifierGroup:
        """Create a modifier group.

        Args:
            restaurant_id: The restaurant scope
            request: Group fields; unset optional fields take their defaults

        Returns:
            The created ModifierGroup

        Raises:
            InvalidRulesError: If the selection rules are violated
            DuplicateNameError: If the name is already used in the restaurant
        """
        group = ModifierGroup(
            id=new_id(),
            restaurant_id=restaurant_id,
            name=request.name.strip(),
            selection_type=request.selection_type,
            is_required=request.is_required if request.is_required is not None else False,
            min_selections=request.min_selections or 0,
            max_selections=request.max_selections or 0,
            display_order=request.display_order or 0,
            status=request.status or CatalogStatus.ACTIVE,
        )
        validate_selection_rules(group)

        try:
            self.group_repository.create_group(group)
        except DuplicateKeyError as e:
            raise rejected(GROUP, DuplicateNameError("Modifier group name already exists")) from e

        record_catalog_mutation(GROUP, "create")
        logger.info(f"Created modifier group {group.id} for restaurant {restaurant_id}")
        return group

    @traced("modifiers.get_group")
    async def get_group(self, restaurant_id: str, group_id: str) -> ModifierGroup:
        """Get a single modifier group.

        Raises:
            NotFoundError: If the group does not exist in the restaurant
        """
        return self._require_group(restaurant_id, group_id)

    @traced("modifiers.update_group")
    async def update_group(
        self, restaurant_id: str, group_id: str, patch: UpdateModifierGroupRequest
    ) -> ModifierGroup:
        """Apply a partial update to a modifier group.

        The supplied fields are overlaid on the stored group and the selection
        rules are checked against that candidate before anything is written,
        so an update can be rejected even when each field is valid alone.

        Args:
            restaurant_id: The restaurant scope
            group_id: The group to update
            patch: Fields to change

        Returns:
            The updated ModifierGroup

        Raises:
            NotFoundError: If the group does not exist
            InvalidRulesError: If the candidate state violates the rules
            DuplicateNameError: If the new name is already used
        """
        group = self._require_group(restaurant_id, group_id)

        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()

        candidate = group.model_copy(update=changes)
        validate_selection_rules(candidate)

        try:
            self.group_repository.update_group(candidate, previous_name=group.name)
        except DuplicateKeyError as e:
            raise rejected(GROUP, DuplicateNameError("Modifier group name already exists")) from e

        record_catalog_mutation(GROUP, "update")
        logger.info(f"Updated modifier group {group_id}: {sorted(changes)}")
        return candidate

    @traced("modifiers.delete_group")
    async def delete_group(self, restaurant_id: str, group_id: str) -> None:
        """Delete a modifier group and all of its options.

        Options are removed before the group. If the process dies in between,
        a group without options remains, never options without a group.

        Raises:
            NotFoundError: If the group does not exist
        """
        group = self._require_group(restaurant_id, group_id)

        deleted_options = self.option_repository.delete_options_for_group(group.id)
        self.group_repository.delete_group(group)

        record_cascade_delete(deleted_options)
        record_catalog_mutation(GROUP, "delete")
        logger.info(f"Deleted modifier group {group_id} with {deleted_options} options")

    @traced("modifiers.list_groups")
    async def list_groups(
        self, restaurant_id: str, status_filter: StatusFilter = StatusFilter.ALL
    ) -> list[ModifierGroup]:
        """List modifier groups ordered by display order, newest first on ties.

        Args:
            restaurant_id: The restaurant scope
            status_filter: active, inactive or all

        Returns:
            List of ModifierGroup, empty list if none found
        """
        groups = self.group_repository.list_groups(restaurant_id, _status_or_none(status_filter))
        return _sort_groups(groups)

    @traced("modifiers.list_options")
    async def list_options(
        self,
        restaurant_id: str,
        group_id: str,
        status_filter: StatusFilter = StatusFilter.ALL,
    ) -> list[ModifierOptionView]:
        """List the options of a group ordered by display order, oldest first on ties.

        Args:
            restaurant_id: The restaurant scope
            group_id: The owning group
            status_filter: active, inactive or all

        Returns:
            List of options with price adjustments in major units

        Raises:
            NotFoundError: If the group does not exist
        """
        self._require_group(restaurant_id, group_id)

        options = self.option_repository.list_options(group_id, _status_or_none(status_filter))
        return [ModifierOptionView.from_option(option) for option in _sort_options(options)]

    @traced("modifiers.create_option")
    async def create_option(
        self, restaurant_id: str, request: CreateModifierOptionRequest
    ) -> ModifierOptionView:
        """Create an option in a group.

        Without an explicit display order the option goes after the last one
        of the group. Concurrent creations may pick the same order.

        Args:
            restaurant_id: The restaurant scope
            request: Option fields

        Returns:
            The created option

        Raises:
            NotFoundError: If the group does not exist
            InvalidPriceError: If the price adjustment is negative
            DuplicateNameError: If the name is already used in the group
        """
        group = self._require_group(restaurant_id, request.group_id)

        cents = 0 if request.price_adjustment is None else _option_price_cents(request.price_adjustment)

        display_order = request.display_order
        if display_order is None:
            current_max = self.option_repository.get_max_display_order(group.id)
            display_order = 0 if current_max is None else current_max + 1

        option = ModifierOption(
            id=new_id(),
            group_id=group.id,
            name=request.name.strip(),
            price_adjustment_cents=cents,
            display_order=display_order,
            status=request.status or CatalogStatus.ACTIVE,
        )

        try:
            self.option_repository.create_option(option)
        except DuplicateKeyError as e:
            raise rejected(
                OPTION, DuplicateNameError("Option name already exists in this group")
            ) from e

        record_catalog_mutation(OPTION, "create")
        logger.info(f"Created modifier option {option.id} in group {group.id}")
        return ModifierOptionView.from_option(option)

    @traced("modifiers.update_option")
    async def update_option(
        self, restaurant_id: str, option_id: str, patch: UpdateModifierOptionRequest
    ) -> ModifierOptionView:
        """Apply a partial update to an option.

        Raises:
            NotFoundError: If the option does not exist in the restaurant
            InvalidPriceError: If the new price adjustment is negative
            DuplicateNameError: If the new name is already used in the group
        """
        option = self._require_option(restaurant_id, option_id)

        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        if "price_adjustment" in changes:
            changes["price_adjustment_cents"] = _option_price_cents(changes.pop("price_adjustment"))

        candidate = option.model_copy(update=changes)

        try:
            self.option_repository.update_option(candidate, previous_name=option.name)
        except DuplicateKeyError as e:
            raise rejected(
                OPTION, DuplicateNameError("Option name already exists in this group")
            ) from e

        record_catalog_mutation(OPTION, "update")
        return ModifierOptionView.from_option(candidate)

    @traced("modifiers.delete_option")
    async def delete_option(self, restaurant_id: str, option_id: str) -> None:
        """Physically delete an option.

        Raises:
            NotFoundError: If the option does not exist in the restaurant
        """
        option = self._require_option(restaurant_id, option_id)
        self.option_repository.delete_option(option)

        record_catalog_mutation(OPTION, "delete")
        logger.info(f"Deleted modifier option {option_id}")

    @traced("modifiers.find_active_groups")
    async def find_active_groups(
        self, restaurant_id: str, group_ids: Sequence[str]
    ) -> list[ModifierGroup]:
        """Resolve ids to active groups of the restaurant.

        Ids that are unknown, foreign or inactive are silently left out; the
        caller compares counts to detect them.
        """
        return self.group_repository.get_groups_by_ids(
            restaurant_id, group_ids, status=CatalogStatus.ACTIVE
        )

    @traced("modifiers.get_groups_with_options")
    async def get_groups_with_options(
        self, restaurant_id: str, group_ids: Sequence[str]
    ) -> list[ModifierGroupWithOptions]:
        """Load active groups populated with their active options.

        Inactive groups referenced in ``group_ids`` are dropped rather than
        reported.

        Args:
            restaurant_id: The restaurant scope
            group_ids: Groups to load, typically an item's assignment

        Returns:
            Groups ordered as in list_groups, options as in list_options
        """
        if not group_ids:
            return []

        groups = _sort_groups(
            self.group_repository.get_groups_by_ids(
                restaurant_id, group_ids, status=CatalogStatus.ACTIVE
            )
        )
        options = self.option_repository.list_options_for_groups(
            [group.id for group in groups], status=CatalogStatus.ACTIVE
        )

        options_by_group: dict[str, list[ModifierOptionView]] = {}
        for option in _sort_options(options):
            options_by_group.setdefault(option.group_id, []).append(
                ModifierOptionView.from_option(option)
            )

        return [
            ModifierGroupWithOptions(**group.model_dump(), options=options_by_group.get(group.id, []))
            for group in groups
        ]
