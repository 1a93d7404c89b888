"""
Listing service for the listing lifecycle.
Handles the landlord authorization guard, geocoding, image uploads with
compensation, partial updates, deletion and public reads.
"""

from typing import Optional, List, Dict, Any
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from stayhub.config import Settings, settings as default_settings
from stayhub.models.account import Account
from stayhub.models.listing import Listing
from stayhub.repositories.listing import ListingRepository
from stayhub.repositories.review import ReviewRepository
from stayhub.schemas.listing import ListingCreate, ListingUpdate
from stayhub.services.geocoding import GeocodingService
from stayhub.services.storage import StorageService, StoredObject, is_present
from stayhub.utils.exceptions import (
    APIException,
    InsufficientPermissionsError,
    LandlordNotApprovedError,
    ListingNotFoundError,
    ListingOwnershipError,
    LocationNotResolvedError,
    LocationOutsideServiceAreaError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

FRONTDISPLAY_FOLDER = "frontdisplay"
ROOM_FOLDER = "room"
OTHERS_FOLDER = "others"


class ListingService:
    """
    Listing service with business rules for approved landlords.
    Reads are public; writes require an approved landlord and, for existing listings, ownership.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        storage: StorageService,
        geocoder: GeocodingService,
        config: Settings = default_settings
    ):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)
        self.review_repo = ReviewRepository(db_session)
        self.storage = storage
        self.geocoder = geocoder
        self.bucket = config.listing_images_bucket

    @staticmethod
    def ensure_can_manage_listings(account: Account) -> None:
        """
        Authorization guard for listing writes.

        Raises:
            InsufficientPermissionsError: If the account is not a landlord
            LandlordNotApprovedError: If the landlord is awaiting approval
        """
        if account.can_manage_listings:
            return
        if not account.is_landlord:
            raise InsufficientPermissionsError("manage listings")
        raise LandlordNotApprovedError()

    async def _get_owned_listing(self, listing_id: uuid.UUID, account: Account) -> Listing:
        self.ensure_can_manage_listings(account)

        listing = await self.listing_repo.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(str(listing_id))

        if not account.owns(listing.user_id):
            logger.warning(f"Account {account.id} tried to modify listing {listing_id} owned by {listing.user_id}")
            raise ListingOwnershipError()

        return listing

    async def _store_image(self, folder: str, upload: Optional[UploadFile]) -> Optional[StoredObject]:
        """Store one listing image; a failure is logged and yields None."""
        if not is_present(upload):
            return None
        try:
            return await self.storage.upload_image(self.bucket, folder, upload)
        except APIException as e:
            logger.warning(f"Skipping {folder} image '{upload.filename}': {e.detail}")
            return None

    async def _store_images(
        self,
        frontdisplay: Optional[UploadFile],
        room: Optional[UploadFile],
        others: Optional[List[UploadFile]]
    ) -> Dict[str, Any]:
        """
        Store the listing images that are present.
        If storing fails outright, everything written so far is removed before the error propagates.

        Returns:
            Dict with the stored "frontdisplay" and "room" objects (or None) and the "others" list
        """
        images: Dict[str, Any] = {"frontdisplay": None, "room": None, "others": []}
        try:
            for upload in others or []:
                stored = await self._store_image(OTHERS_FOLDER, upload)
                if stored is not None:
                    images["others"].append(stored)
            images["frontdisplay"] = await self._store_image(FRONTDISPLAY_FOLDER, frontdisplay)
            images["room"] = await self._store_image(ROOM_FOLDER, room)
        except Exception:
            removed = await self.storage.remove(self.bucket, self._stored_paths(images))
            logger.error(f"Image storage aborted, removed {removed} images already written")
            raise
        return images

    @staticmethod
    def _stored_paths(images: Dict[str, Any]) -> List[str]:
        paths = [obj.path for obj in (images["frontdisplay"], images["room"]) if obj is not None]
        paths.extend(obj.path for obj in images["others"])
        return paths

    async def create_listing(
        self,
        data: ListingCreate,
        owner: Account,
        frontdisplay: Optional[UploadFile] = None,
        room: Optional[UploadFile] = None,
        others: Optional[List[UploadFile]] = None,
        user_id: Optional[uuid.UUID] = None
    ) -> Listing:
        """
        Create a listing owned by the calling landlord.
        The location is geocoded before anything is stored.

        Args:
            data: Validated listing fields
            owner: Authenticated landlord
            frontdisplay: Primary display image
            room: Room image
            others: Additional images in display order
            user_id: Owner id echoed by the form; must match the caller when given

        Returns:
            Created listing

        Raises:
            LandlordNotApprovedError: If the landlord is not approved
            LocationNotResolvedError: If the location cannot be geocoded
            LocationOutsideServiceAreaError: If the location is outside the service area
            GeocodingError: If the geocoding provider fails
        """
        self.ensure_can_manage_listings(owner)

        if user_id is not None and user_id != owner.id:
            raise ListingOwnershipError("Listings can only be created for your own account")

        coords = await self.geocoder.geocode(data.location)
        if coords is None:
            raise LocationNotResolvedError(data.location)
        if not self.geocoder.is_within_service_area(coords):
            raise LocationOutsideServiceAreaError(data.location)

        images = await self._store_images(frontdisplay, room, others)

        try:
            listing = await self.listing_repo.create({
                "user_id": owner.id,
                "name": data.name,
                "description": data.description,
                "price": data.price,
                "location": data.location,
                "latitude": coords.latitude,
                "longitude": coords.longitude,
                "frontdisplay": images["frontdisplay"].url if images["frontdisplay"] else None,
                "room": images["room"].url if images["room"] else None,
                "others": [obj.url for obj in images["others"]],
            })
        except Exception:
            removed = await self.storage.remove(self.bucket, self._stored_paths(images))
            logger.error(f"Listing insert failed for {owner.email}, removed {removed} uploaded images")
            raise

        logger.info(f"Listing created by {owner.email}: {listing.name} (ID: {listing.id})")
        return listing

    async def update_listing(
        self,
        listing_id: uuid.UUID,
        data: ListingUpdate,
        account: Account,
        frontdisplay: Optional[UploadFile] = None,
        room: Optional[UploadFile] = None,
        others: Optional[List[UploadFile]] = None
    ) -> Listing:
        """
        Partially update a listing owned by the caller.
        New images replace the stored ones; "others" is replaced as a whole.

        Raises:
            ListingNotFoundError: If the listing does not exist
            ListingOwnershipError: If the caller does not own the listing
            ValidationError: If nothing was supplied
        """
        listing = await self._get_owned_listing(listing_id, account)

        has_images = is_present(frontdisplay) or is_present(room) or any(is_present(u) for u in others or [])
        if not data.has_changes() and not has_images:
            raise ValidationError("No valid fields provided for update")

        values = data.model_dump(exclude_none=True)
        images = await self._store_images(frontdisplay, room, others)

        replaced: List[Optional[str]] = []
        for field in ("frontdisplay", "room"):
            if images[field] is not None:
                replaced.append(getattr(listing, field))
                values[field] = images[field].url
        if images["others"]:
            replaced.extend(listing.others or [])
            values["others"] = [obj.url for obj in images["others"]]

        if not values:
            raise ValidationError("None of the submitted images could be stored")

        try:
            updated = await self.listing_repo.update(listing_id, values)
        except Exception:
            await self.storage.remove(self.bucket, self._stored_paths(images))
            raise

        if replaced:
            removed = await self.storage.remove_urls(self.bucket, replaced)
            logger.debug(f"Removed {removed} replaced images of listing {listing_id}")

        logger.info(f"Listing updated by {account.email}: {listing_id} ({', '.join(sorted(values))})")
        return updated

    async def delete_listing(self, listing_id: uuid.UUID, account: Account) -> None:
        """
        Delete a listing owned by the caller together with its reviews and images.

        Raises:
            ListingNotFoundError: If the listing does not exist
            ListingOwnershipError: If the caller does not own the listing
        """
        listing = await self._get_owned_listing(listing_id, account)
        image_urls = listing.image_urls

        reviews_removed = await self.review_repo.delete_for_listing(listing_id, commit=False)
        await self.listing_repo.delete(listing_id)

        images_removed = await self.storage.remove_urls(self.bucket, image_urls)
        logger.info(
            f"Listing deleted by {account.email}: {listing_id} "
            f"(with {reviews_removed} reviews and {images_removed} images)"
        )

    async def list_listings(self) -> List[Listing]:
        """Every listing, newest first."""
        return await self.listing_repo.list_all()

    async def list_owner_listings(self, owner_id: uuid.UUID) -> List[Listing]:
        """Listings owned by one account, newest first."""
        return await self.listing_repo.list_by_owner(owner_id)

    async def get_listing(self, listing_id: uuid.UUID) -> Listing:
        """
        Get one listing.

        Raises:
            ListingNotFoundError: If the listing does not exist
        """
        listing = await self.listing_repo.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(str(listing_id))
        return listing

    async def search_by_location(self, location: Optional[str]) -> List[Listing]:
        """
        Case-insensitive location prefix search, newest first.

        Raises:
            ValidationError: If the query is missing or blank
        """
        if location is None or not location.strip():
            raise ValidationError.for_field("location", "Location query is required")
        return await self.listing_repo.search_by_location_prefix(location.strip())
