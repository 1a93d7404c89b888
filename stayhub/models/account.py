"""
Accounts for guests, landlords and administrators.
"""

from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from stayhub.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
import enum
import uuid
from typing import Optional

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Column lengths
EMAIL_LENGTH = 255
NAME_LENGTH = 255
URL_LENGTH = 1024


class AccountRole(str, enum.Enum):
    USER = "User"
    LANDLORD = "Landlord"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AccountRole":
        """
        Match a submitted role name regardless of case.
        A blank value means USER; an unknown name raises ValueError.
        """
        if value is None or not value.strip():
            return cls.USER
        wanted = value.strip().lower()
        match = next((role for role in cls if role.value.lower() == wanted), None)
        if match is None:
            raise ValueError(f"Unknown role '{value}'. Allowed roles: {', '.join(r.value for r in cls)}")
        return match


class Account(Base):
    """
    A marketplace account.
    Landlords also carry two verification image URLs and stay unapproved until an admin approves them.
    """

    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(String(EMAIL_LENGTH), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)
    contact_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    role: Mapped[AccountRole] = mapped_column(
        SQLEnum(AccountRole, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=AccountRole.USER,
        index=True
    )
    # Gates listing management; only consulted for landlords
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    profile_image_url: Mapped[Optional[str]] = mapped_column(String(URL_LENGTH), nullable=True)
    id_image_url: Mapped[Optional[str]] = mapped_column(String(URL_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<Account {self.email} ({self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """Normalize an address with email-validator; lowercased so lookups are case-insensitive."""
        try:
            return validate_email(email, check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {e}")

    @classmethod
    def hash_password(cls, password: str, min_length: int = 8) -> str:
        if not password or len(password) < min_length:
            raise ValueError(f"Password must be at least {min_length} characters long")
        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @property
    def is_landlord(self) -> bool:
        return self.role == AccountRole.LANDLORD

    @property
    def can_manage_listings(self) -> bool:
        return self.is_landlord and self.is_approved

    def owns(self, owner_id: uuid.UUID) -> bool:
        return self.id == owner_id
