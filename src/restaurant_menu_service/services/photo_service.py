"""Photo gallery service for menu items."""

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from restaurant_menu_service.errors import NotFoundError
from restaurant_menu_service.models.catalog_models import MenuItem, MenuItemPhoto
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import (
    record_catalog_mutation,
    record_primary_reelection,
)
from restaurant_menu_service.repositories.catalog_repositories import (
    MenuItemRepository,
    PhotoRepository,
)
from restaurant_menu_service.services.rejections import rejected
from restaurant_menu_service.utils.identifiers import new_id

logger = logging.getLogger(__name__)

PHOTO = "menu_item_photo"


def order_gallery(photos: Iterable[MenuItemPhoto]) -> list[MenuItemPhoto]:
    """Order photos primary first, then newest first."""
    newest_first = sorted(photos, key=lambda p: p.created_at, reverse=True)
    return sorted(newest_first, key=lambda p: not p.is_primary)


class PhotoService:
    """Service maintaining each item's gallery and its single primary photo.

    Primary changes are a read followed by several writes without a
    transaction. Concurrent changes on the same item end with the last
    writer's choice; a transient state with zero or two primaries is fixed
    by the next gallery mutation.
    """

    def __init__(
        self,
        photo_repository: PhotoRepository,
        item_repository: MenuItemRepository,
    ) -> None:
        """Initialize the PhotoService.

        Args:
            photo_repository: Repository for item photos
            item_repository: Repository used to check the owning item
        """
        self.photo_repository = photo_repository
        self.item_repository = item_repository

    def _require_item(self, restaurant_id: str, item_id: str) -> MenuItem:
        item = self.item_repository.get_visible_item(restaurant_id, item_id)
        if item is None:
            raise rejected(PHOTO, NotFoundError(f"Item {item_id} not found"))
        return item

    def _require_photo(self, item_id: str, photo_id: str) -> MenuItemPhoto:
        photo = self.photo_repository.get_photo(item_id, photo_id)
        if photo is None:
            raise rejected(PHOTO, NotFoundError(f"Photo {photo_id} not found"))
        return photo

    @traced("photos.list")
    async def list_photos(self, restaurant_id: str, item_id: str) -> list[MenuItemPhoto]:
        """List an item's photos, primary first, then newest first.

        Raises:
            NotFoundError: If the item does not exist or is deleted
        """
        self._require_item(restaurant_id, item_id)
        return order_gallery(self.photo_repository.list_photos(item_id))

    def _settle_primary(
        self,
        item_id: str,
        photos: list[MenuItemPhoto],
        preferred_id: str | None = None,
    ) -> list[MenuItemPhoto]:
        """Write flags so exactly one photo of a non-empty gallery is primary.

        The preferred photo wins when given. Otherwise the newest current
        primary is kept, and when there is none the newest photo is promoted.
        Stale extra primaries are cleared either way.

        Returns:
            The photos with the flags as stored
        """
        if not photos:
            return []

        primaries = [p for p in photos if p.is_primary]
        if preferred_id is not None:
            keeper_id = preferred_id
        elif primaries:
            keeper_id = max(primaries, key=lambda p: p.created_at).id
        else:
            keeper_id = max(photos, key=lambda p: p.created_at).id
            record_primary_reelection()
            logger.info(f"Promoted photo {keeper_id} to primary for item {item_id}")

        settled = []
        for photo in photos:
            wanted = photo.id == keeper_id
            if photo.is_primary != wanted:
                if not self.photo_repository.set_primary_flag(photo.id, wanted):
                    continue
            settled.append(photo.model_copy(update={"is_primary": wanted}))

        return settled

    @traced("photos.add")
    async def add_photos(
        self, restaurant_id: str, item_id: str, urls: Sequence[str]
    ) -> list[MenuItemPhoto]:
        """Attach photos to an item in input order.

        When the item has no primary photo yet, the first URL of the batch
        becomes primary.

        Args:
            restaurant_id: The restaurant scope
            item_id: The owning item
            urls: Photo URLs to attach

        Returns:
            The full, ordered gallery

        Raises:
            NotFoundError: If the item does not exist or is deleted
        """
        self._require_item(restaurant_id, item_id)

        existing = self.photo_repository.list_photos(item_id)
        has_primary = any(p.is_primary for p in existing)

        # Offsets keep creation times distinct and in input order
        created = datetime.now(UTC)
        photos = [
            MenuItemPhoto(
                id=new_id(),
                menu_item_id=item_id,
                url=url,
                is_primary=not has_primary and index == 0,
                created_at=created + timedelta(microseconds=index),
            )
            for index, url in enumerate(urls)
        ]

        if photos:
            self.photo_repository.add_photos(photos)
            record_catalog_mutation(PHOTO, "create")
            logger.info(f"Attached {len(photos)} photos to item {item_id}")

        # the index may not list the new photos yet
        new_ids = {p.id for p in photos}
        gallery = [p for p in existing if p.id not in new_ids] + photos
        return order_gallery(self._settle_primary(item_id, gallery))

    @traced("photos.remove")
    async def remove_photo(
        self, restaurant_id: str, item_id: str, photo_id: str
    ) -> list[MenuItemPhoto]:
        """Remove a photo, promoting the newest remaining one if none is primary.

        Returns:
            The remaining, ordered gallery

        Raises:
            NotFoundError: If the item or the photo (on that item) does not exist
        """
        self._require_item(restaurant_id, item_id)
        photo = self._require_photo(item_id, photo_id)

        self.photo_repository.delete_photo(photo.id)
        record_catalog_mutation(PHOTO, "delete")

        # the index may still list the deleted photo
        remaining = [p for p in self.photo_repository.list_photos(item_id) if p.id != photo.id]
        return order_gallery(self._settle_primary(item_id, remaining))

    @traced("photos.set_primary")
    async def set_primary(
        self, restaurant_id: str, item_id: str, photo_id: str
    ) -> list[MenuItemPhoto]:
        """Make a photo the item's only primary photo.

        Returns:
            The ordered gallery

        Raises:
            NotFoundError: If the item or the photo (on that item) does not exist
        """
        self._require_item(restaurant_id, item_id)
        photo = self._require_photo(item_id, photo_id)

        photos = [p for p in self.photo_repository.list_photos(item_id) if p.id != photo.id]
        photos.append(photo)

        gallery = self._settle_primary(item_id, photos, preferred_id=photo.id)
        record_catalog_mutation(PHOTO, "set_primary")
        return order_gallery(gallery)

    @traced("photos.primary_urls")
    async def primary_photo_urls(self, item_ids: Sequence[str]) -> dict[str, str]:
        """Map item ids to their primary photo URL; items without one are omitted."""
        if not item_ids:
            return {}
        return self.photo_repository.get_primary_photo_urls(item_ids)
