"""
Admin API endpoints for the landlord approval gate and verification images.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from stayhub.config import settings
from stayhub.models.account import Account
from stayhub.schemas.account import AccountResponse, ApprovalResponse, PendingLandlordsResponse
from stayhub.services.auth import AuthService
from stayhub.services.error_handler import get_error_responses
from stayhub.services.storage import StorageService
from stayhub.utils.dependencies import get_auth_service, get_current_account, get_current_admin, get_storage_service
from stayhub.utils.exceptions import InsufficientPermissionsError, NotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])

# Mounted beside the public /storage files, outside the API prefix
verification_router = APIRouter(tags=["Admin"])


@router.put(
    "/approve/{account_id}",
    response_model=ApprovalResponse,
    summary="Approve a landlord",
    description="Grant an approved-landlord status. Approving an already approved landlord succeeds.",
    responses=get_error_responses(400, 401, 403, 404)
)
async def approve_landlord(
    account_id: uuid.UUID,
    admin: Account = Depends(get_current_admin),
    auth_service: AuthService = Depends(get_auth_service)
) -> ApprovalResponse:
    """
    Approve a landlord account.

    Raises:
        AccountNotFoundError: If the account does not exist
        BadRequestError: If the account is not a landlord
    """
    account = await auth_service.approve_landlord(account_id)
    logger.info(f"Admin {admin.email} approved landlord {account.email}")
    return ApprovalResponse()


@router.get(
    "/pending-landlords",
    response_model=PendingLandlordsResponse,
    summary="List landlords awaiting approval",
    description="Landlord accounts that have not been approved yet, oldest registration first",
    responses=get_error_responses(401, 403)
)
async def get_pending_landlords(
    admin: Account = Depends(get_current_admin),
    auth_service: AuthService = Depends(get_auth_service)
) -> PendingLandlordsResponse:
    landlords = await auth_service.get_pending_landlords()
    return PendingLandlordsResponse(
        landlords=[AccountResponse.model_validate(account) for account in landlords]
    )


@verification_router.get(
    f"/storage/{settings.user_images_bucket}/{{object_path:path}}",
    response_class=FileResponse,
    summary="Download a verification image",
    description="Profile and ID photos are private to their account and to admins",
    responses=get_error_responses(401, 403, 404)
)
async def get_verification_image(
    object_path: str,
    account: Account = Depends(get_current_account),
    storage: StorageService = Depends(get_storage_service)
) -> FileResponse:
    """
    Stream a verification image.
    Object names start with the owning account id, e.g. "ids/{account_id}-passport.png".

    Raises:
        InsufficientPermissionsError: If the caller is neither an admin nor the owner
        NotFoundError: If no such image is stored
    """
    owner_prefix = f"{account.id}-"
    if not account.is_admin and not object_path.rsplit("/", 1)[-1].startswith(owner_prefix):
        raise InsufficientPermissionsError("view another account's verification images")

    target = await storage.local_file(settings.user_images_bucket, object_path)
    if target is None:
        raise NotFoundError("Image")
    return FileResponse(target)
