"""
Listing API endpoints: create, read, search, update and delete.
Writes accept multipart forms so images can be attached.
"""

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from typing import List, Optional
from stayhub.models.account import Account
from stayhub.schemas.listing import (
    ListingCreate,
    ListingCreatedResponse,
    ListingResponse,
    ListingUpdate,
    ListingUpdatedResponse,
    OwnerListingsResponse,
)
from stayhub.services.error_handler import get_error_responses
from stayhub.services.listing import ListingService
from stayhub.utils.dependencies import get_current_account, get_listing_service
import uuid


router = APIRouter(tags=["Listings"])


@router.post(
    "/CreateHotels",
    response_model=ListingCreatedResponse,
    status_code=status.HTTP_200_OK,
    summary="Create a listing",
    description="Create a listing as an approved landlord. The location is geocoded before anything is stored.",
    responses=get_error_responses(400, 401, 403, 500)
)
async def create_hotel(
    name: str = Form(...),
    price: str = Form(...),
    location: str = Form(...),
    description: Optional[str] = Form(None),
    user_id: Optional[uuid.UUID] = Form(None),
    frontdisplay: Optional[UploadFile] = File(None),
    room: Optional[UploadFile] = File(None),
    others: Optional[List[UploadFile]] = File(None),
    current_account: Account = Depends(get_current_account),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingCreatedResponse:
    """
    Create a listing from a multipart form.

    Raises:
        LandlordNotApprovedError: If the caller is an unapproved landlord
        LocationNotResolvedError: If the location cannot be geocoded
    """
    listing_data = ListingCreate(name=name, price=price, location=location, description=description)
    listing = await listing_service.create_listing(
        listing_data,
        current_account,
        frontdisplay=frontdisplay,
        room=room,
        others=others,
        user_id=user_id
    )
    return ListingCreatedResponse(hotel=ListingResponse.model_validate(listing))


@router.get(
    "/hotels",
    response_model=List[ListingResponse],
    summary="List all listings",
    description="Every listing, newest first"
)
async def list_hotels(
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingResponse]:
    listings = await listing_service.list_listings()
    return [ListingResponse.model_validate(listing) for listing in listings]


@router.get(
    "/hotels/{user_id}",
    response_model=OwnerListingsResponse,
    summary="List a landlord's listings",
    description="Listings owned by one account, newest first",
    responses=get_error_responses(400)
)
async def list_owner_hotels(
    user_id: uuid.UUID,
    listing_service: ListingService = Depends(get_listing_service)
) -> OwnerListingsResponse:
    listings = await listing_service.list_owner_listings(user_id)
    return OwnerListingsResponse(hotels=[ListingResponse.model_validate(listing) for listing in listings])


@router.delete(
    "/hotels/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a listing",
    description="Delete a listing you own, along with its reviews and images",
    responses=get_error_responses(401, 403, 404)
)
async def delete_hotel(
    listing_id: uuid.UUID,
    current_account: Account = Depends(get_current_account),
    listing_service: ListingService = Depends(get_listing_service)
) -> Response:
    await listing_service.delete_listing(listing_id, current_account)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/search",
    response_model=List[ListingResponse],
    summary="Search listings by location",
    description="Case-insensitive prefix match on the listing location, newest first",
    responses=get_error_responses(400)
)
async def search_hotels(
    location: Optional[str] = Query(None, description="Leading text of the location, e.g. 'Taguig'"),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingResponse]:
    listings = await listing_service.search_by_location(location)
    return [ListingResponse.model_validate(listing) for listing in listings]


@router.get(
    "/EditHotels/{listing_id}",
    response_model=ListingResponse,
    summary="Get a listing",
    responses=get_error_responses(404)
)
async def get_hotel(
    listing_id: uuid.UUID,
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    listing = await listing_service.get_listing(listing_id)
    return ListingResponse.model_validate(listing)


@router.put(
    "/EditHotels/{listing_id}",
    response_model=ListingUpdatedResponse,
    summary="Update a listing",
    description="Partially update a listing you own; attached images replace the stored ones",
    responses=get_error_responses(400, 401, 403, 404)
)
async def update_hotel(
    listing_id: uuid.UUID,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    frontdisplay: Optional[UploadFile] = File(None),
    room: Optional[UploadFile] = File(None),
    others: Optional[List[UploadFile]] = File(None),
    current_account: Account = Depends(get_current_account),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingUpdatedResponse:
    """
    Update a listing from a multipart form. Only submitted fields change.

    Raises:
        ListingOwnershipError: If the caller does not own the listing
        ValidationError: If nothing was submitted
    """
    update_data = ListingUpdate(name=name, description=description, price=price)
    listing = await listing_service.update_listing(
        listing_id,
        update_data,
        current_account,
        frontdisplay=frontdisplay,
        room=room,
        others=others
    )
    return ListingUpdatedResponse(hotel=ListingResponse.model_validate(listing))
