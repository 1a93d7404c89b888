"""
Authentication service for registration, login, identity resolution and landlord approval.
Handles JWT token generation and validation, verification image uploads with
compensation on failure, and the admin approval gate.
"""

from typing import Optional, Tuple, List
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from stayhub.config import Settings, settings as default_settings
from stayhub.repositories.account import AccountRepository
from stayhub.models.account import Account, AccountRole
from stayhub.schemas.account import AccountRegister
from stayhub.services.storage import StorageService, StoredObject, is_present
from stayhub.utils.auth import create_access_token, verify_token, TokenPayload
from stayhub.utils.exceptions import (
    AccountNotFoundError,
    BadRequestError,
    DuplicateResourceError,
    EmailNotFoundError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingVerificationAssetsError,
    TokenExpiredError,
    ValidationError,
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)


class RequestIdentity:
    """
    Caller identity resolved from a bearer token for a single request.
    The account is None when the token is valid but its account row is gone.
    """

    def __init__(self, token: TokenPayload, account: Optional[Account] = None):
        self.token = token
        self.account = account

    @property
    def account_id(self) -> uuid.UUID:
        return self.token.account_id

    @property
    def email(self) -> str:
        """Account email, falling back to the token's email claim."""
        if self.account is not None and self.account.email:
            return self.account.email
        return self.token.email

    @property
    def is_admin(self) -> bool:
        return self.account is not None and self.account.is_admin


class AuthService:
    """
    Authentication service for managing accounts and the landlord approval gate.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        storage: Optional[StorageService] = None,
        config: Settings = default_settings
    ):
        self.db = db_session
        self.account_repo = AccountRepository(db_session)
        self.storage = storage
        self.config = config

    async def register(
        self,
        data: AccountRegister,
        profile_image: Optional[UploadFile] = None,
        id_image: Optional[UploadFile] = None
    ) -> Account:
        """
        Register a new account.
        Landlords must supply both verification images; every check runs before anything is stored.

        Args:
            data: Validated registration fields
            profile_image: Profile photo (required for landlords)
            id_image: Government ID photo (required for landlords)

        Returns:
            Created account

        Raises:
            BadRequestError: If an admin account is requested
            MissingVerificationAssetsError: If a landlord omits a verification image
            ValidationError: If the password or an image is invalid
            DuplicateResourceError: If the email is already registered
            StorageError: If a verification image cannot be stored
        """
        if data.role == AccountRole.ADMIN:
            raise BadRequestError("Admin accounts cannot be self-registered")

        images = {"profile_image": profile_image, "id_image": id_image}
        if data.role == AccountRole.LANDLORD:
            missing = [name for name, upload in images.items() if not is_present(upload)]
            if missing:
                logger.info(f"Landlord registration for {data.email} rejected, missing: {missing}")
                raise MissingVerificationAssetsError(missing)

        if len(data.password) < self.config.min_password_length:
            raise ValidationError.for_field(
                "password",
                f"Password must be at least {self.config.min_password_length} characters long"
            )

        if await self.account_repo.email_exists(data.email):
            raise DuplicateResourceError("Account", data.email)

        # Validate every image before the first upload
        present = {name: upload for name, upload in images.items() if is_present(upload)}
        contents = {}
        if present:
            storage = self._require_storage()
            for name, upload in present.items():
                contents[name] = await storage.read_image(upload)

        account_id = uuid.uuid4()
        uploaded = await self._upload_verification_images(account_id, present, contents)

        try:
            account = await self.account_repo.create_account(
                {
                    "id": account_id,
                    "email": data.email,
                    "password": data.password,
                    "full_name": data.full_name,
                    "contact_number": data.contact_number,
                    "gender": data.gender,
                    "role": data.role,
                    "is_approved": False,
                    "profile_image_url": uploaded["profile_image"].url if "profile_image" in uploaded else None,
                    "id_image_url": uploaded["id_image"].url if "id_image" in uploaded else None,
                },
                min_password_length=self.config.min_password_length
            )
        except IntegrityError:
            await self._discard(list(uploaded.values()))
            raise DuplicateResourceError("Account", data.email)
        except ValueError as e:
            await self._discard(list(uploaded.values()))
            raise ValidationError(str(e))
        except Exception:
            await self._discard(list(uploaded.values()))
            raise

        logger.info(f"Registered {account.role.value} account {account.email} (ID: {account.id})")
        return account

    async def _upload_verification_images(self, account_id: uuid.UUID, present, contents) -> dict:
        """Upload validated verification images, removing earlier uploads if a later one fails."""
        folders = {"profile_image": "profiles", "id_image": "ids"}
        uploaded = {}
        if not present:
            return uploaded

        storage = self._require_storage()
        bucket = self.config.user_images_bucket
        try:
            for name, upload in present.items():
                content, content_type = contents[name]
                path = storage.build_object_path(folders[name], upload.filename, prefix=str(account_id))
                uploaded[name] = await storage.upload(bucket, path, content, content_type)
        except Exception:
            await self._discard(list(uploaded.values()))
            raise
        return uploaded

    async def _discard(self, objects: List[StoredObject]) -> None:
        """Compensating removal of objects stored for a failed registration."""
        if not objects or self.storage is None:
            return
        removed = await self.storage.remove(self.config.user_images_bucket, [obj.path for obj in objects])
        logger.warning(f"Registration failed, removed {removed} of {len(objects)} verification images")

    def _require_storage(self) -> StorageService:
        if self.storage is None:
            raise RuntimeError("AuthService was built without a storage service")
        return self.storage

    async def authenticate(self, email: str, password: str) -> Account:
        """
        Authenticate an account with email and password.

        Raises:
            EmailNotFoundError: If no account uses the email
            InvalidCredentialsError: If the password does not match
        """
        account = await self.account_repo.get_by_email(email)
        if account is None:
            logger.warning(f"Login attempt for unknown email: {email}")
            raise EmailNotFoundError()

        if not account.verify_password(password):
            logger.warning(f"Failed login attempt for email: {email}")
            raise InvalidCredentialsError()

        logger.info(f"Account authenticated: {account.email}")
        return account

    async def login(self, email: str, password: str) -> Tuple[Account, str]:
        """
        Authenticate an account and issue an access token.

        Returns:
            Tuple of (account, access_token)
        """
        account = await self.authenticate(email, password)
        return account, self.create_access_token(account)

    @staticmethod
    def create_access_token(account: Account) -> str:
        """Issue an access token carrying the account's id, email and role."""
        return create_access_token(user_id=account.id, email=account.email, role=account.role)

    async def resolve_identity(self, token: str) -> RequestIdentity:
        """
        Resolve a bearer token into the caller's identity.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is malformed or has a bad signature
        """
        try:
            payload = verify_token(token, "access")
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            logger.debug(f"Rejected bearer token: {e}")
            raise InvalidTokenError()

        account = await self.account_repo.get_by_id(payload.account_id)
        if account is None:
            logger.warning(f"Token subject {payload.user_id} has no account row")
        return RequestIdentity(payload, account)

    async def approve_landlord(self, account_id: uuid.UUID) -> Account:
        """
        Approve a landlord account. Approving an already approved landlord succeeds unchanged.

        Raises:
            AccountNotFoundError: If the account does not exist
            BadRequestError: If the account is not a landlord
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))

        if not account.is_landlord:
            raise BadRequestError("Only landlord accounts can be approved")

        if account.is_approved:
            logger.info(f"Landlord {account.email} was already approved")
            return account

        return await self.account_repo.set_approved(account_id, True)

    async def get_pending_landlords(self) -> List[Account]:
        """Landlords awaiting approval, oldest first."""
        return await self.account_repo.get_pending_landlords()

    async def get_profile(self, account_id: uuid.UUID, identity: RequestIdentity) -> Account:
        """
        Read an account profile. Callers may read their own profile; admins may read any.

        Raises:
            InsufficientPermissionsError: If the caller is neither the owner nor an admin
            AccountNotFoundError: If the account does not exist
        """
        if identity.account_id != account_id and not identity.is_admin:
            raise InsufficientPermissionsError("view this profile")

        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    async def create_admin(self, email: str, password: str, full_name: str) -> Account:
        """
        Create an administrator account. Used by the command line bootstrap only.

        Raises:
            DuplicateResourceError: If the email is already registered
            ValueError: If the email or password is invalid
        """
        if await self.account_repo.email_exists(email):
            raise DuplicateResourceError("Account", email)

        account = await self.account_repo.create_account(
            {
                "email": email,
                "password": password,
                "full_name": full_name,
                "role": AccountRole.ADMIN,
                "is_approved": True,
            },
            min_password_length=self.config.min_password_length
        )
        logger.info(f"Created admin account {account.email}")
        return account
