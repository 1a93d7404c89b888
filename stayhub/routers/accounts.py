"""
Account API endpoints for registration, login and profiles.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional
from stayhub.schemas.account import (
    AccountRegister,
    AccountResponse,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegisterResponse,
)
from stayhub.services.auth import AuthService, RequestIdentity
from stayhub.services.error_handler import get_error_responses
from stayhub.utils.dependencies import get_auth_service, get_current_identity
import uuid


router = APIRouter(tags=["Accounts"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_200_OK,
    summary="Register an account",
    description="Register a User or Landlord account. Landlords must attach profile_image and id_image.",
    responses=get_error_responses(400, 409, 500)
)
async def register(
    email: str = Form(...),
    password: str = Form(...),
    full_name: str = Form(...),
    contact_number: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    profile_image: Optional[UploadFile] = File(None),
    id_image: Optional[UploadFile] = File(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> RegisterResponse:
    """
    Register a new account from a multipart form.

    Raises:
        MissingVerificationAssetsError: If a landlord omits a verification image
        DuplicateResourceError: If the email is already registered
    """
    registration = AccountRegister(
        email=email,
        password=password,
        full_name=full_name,
        contact_number=contact_number,
        gender=gender,
        role=role,
    )
    await auth_service.register(registration, profile_image=profile_image, id_image=id_image)
    return RegisterResponse()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in",
    description="Authenticate with email and password, returns the profile and a bearer token",
    responses=get_error_responses(400, 401, 404)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate an account and return a JWT access token.

    Raises:
        EmailNotFoundError: If the email is unknown
        InvalidCredentialsError: If the password is wrong
    """
    account, token = await auth_service.login(login_data.email, login_data.password)
    return LoginResponse(user=AccountResponse.model_validate(account), token=token)


@router.get(
    "/UserProfile/{account_id}",
    response_model=ProfileResponse,
    summary="Get an account profile",
    description="Read your own profile; admins may read any profile",
    responses=get_error_responses(401, 403, 404)
)
async def get_user_profile(
    account_id: uuid.UUID,
    identity: RequestIdentity = Depends(get_current_identity),
    auth_service: AuthService = Depends(get_auth_service)
) -> ProfileResponse:
    account = await auth_service.get_profile(account_id, identity)
    return ProfileResponse(user=AccountResponse.model_validate(account))
