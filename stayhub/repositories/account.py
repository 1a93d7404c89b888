"""
Account repository for authentication and landlord approval queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from stayhub.repositories.base import BaseRepository
from stayhub.models.account import Account, AccountRole
from typing import Optional, List, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class AccountRepository(BaseRepository[Account]):
    """
    Repository for account management.
    Handles email lookups, account creation with password hashing and approval state.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Account, db)

    async def create_account(self, account_data: Dict[str, Any], min_password_length: int = 8) -> Account:
        """
        Create a new account with email normalisation and password hashing.

        Args:
            account_data: Dictionary containing account information.
                          Must include: email, password, full_name
                          Optional: id, role, contact_number, gender, image URLs

        Returns:
            Created account instance

        Raises:
            ValueError: If email or password validation fails
        """
        data = dict(account_data)
        email = Account.validate_email_format(data.pop("email"))
        hashed_password = Account.hash_password(data.pop("password"), min_length=min_password_length)

        create_data = {
            **data,
            "email": email,
            "hashed_password": hashed_password,
            "role": data.get("role", AccountRole.USER),
            "is_approved": data.get("is_approved", False),
        }

        account = await self.create(create_data)
        logger.info(f"Created account: {account.email} (ID: {account.id}, role: {account.role.value})")
        return account

    async def get_by_email(self, email: str) -> Optional[Account]:
        """
        Get account by email address.

        Args:
            email: Email address to search for

        Returns:
            Account instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(Account).where(Account.email == normalized_email))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get account by email {email}: {e}")
            raise

    async def email_exists(self, email: str) -> bool:
        """Check whether an account already uses this email."""
        return await self.get_by_email(email) is not None

    async def get_pending_landlords(self) -> List[Account]:
        """
        Get landlords awaiting approval, oldest registration first.

        Returns:
            List of unapproved landlord accounts
        """
        return await self.get_multi(
            filters={"role": AccountRole.LANDLORD, "is_approved": False},
            newest_first=False
        )

    async def set_approved(self, account_id: uuid.UUID, approved: bool = True) -> Optional[Account]:
        """
        Set the approval flag on an account.

        Returns:
            Updated account, or None if it does not exist
        """
        account = await self.update(account_id, {"is_approved": approved})
        if account is not None:
            logger.info(f"Account {account_id} approval set to {approved}")
        return account
