"""
Test configuration and fixtures for the StayHub Listing API.
Provides database fixtures, test data factories, a fake geocoder and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-the-stayhub-test-suite"
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="stayhub-storage-"))
os.environ.pop("SERVICE_AREA_BOUNDS", None)

import io
import struct
import zlib
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional, Tuple

import pytest
from fastapi import UploadFile
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.datastructures import Headers

from stayhub.database import Base, get_db
from stayhub.main import app
from stayhub.models.account import Account, AccountRole, pwd_context
from stayhub.models.listing import Listing
from stayhub.models.review import Review
from stayhub.repositories.account import AccountRepository
from stayhub.repositories.listing import ListingRepository
from stayhub.repositories.review import ReviewRepository
from stayhub.services.auth import AuthService
from stayhub.services.geocoding import Coordinates, GeocodingService
from stayhub.services.listing import ListingService
from stayhub.services.review import ReviewService
from stayhub.services.storage import StorageService
from stayhub.utils.auth import create_access_token
from stayhub.utils.dependencies import get_geocoding_service, get_storage_service

# Cheap hashes keep the suite fast
pwd_context.update(bcrypt__rounds=4)

TEST_PASSWORD = "testpassword123"
PUBLIC_STORAGE_URL = "http://testserver/storage"

# Known addresses for the fake geocoder, matched case-insensitively as substrings
KNOWN_LOCATIONS: Dict[str, Tuple[float, float]] = {
    "taguig": (14.5176, 121.0509),
    "quezon city": (14.6760, 121.0437),
    "makati": (14.5547, 121.0244),
    "manila": (14.5995, 120.9842),
    "cebu": (10.3157, 123.8854),
}


class FakeGeocoder(GeocodingService):
    """Geocoder answering from KNOWN_LOCATIONS without network access."""

    def __init__(self, service_area=None):
        super().__init__(user_agent="stayhub-tests", service_area=service_area)
        self.calls: List[str] = []
        self.fail_with: Optional[Exception] = None

    async def geocode(self, address: str) -> Optional[Coordinates]:
        self.calls.append(address)
        if self.fail_with is not None:
            raise self.fail_with
        lowered = address.lower()
        for key, (lat, lng) in KNOWN_LOCATIONS.items():
            if key in lowered:
                return Coordinates(latitude=lat, longitude=lng)
        return None


def make_image_bytes(image_format: str = "PNG", size: Tuple[int, int] = (32, 32), color: str = "red") -> bytes:
    """Render a small solid-colour image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_upload(
    filename: str = "photo.png",
    content: Optional[bytes] = None,
    content_type: str = "image/png"
) -> UploadFile:
    """Build a FastAPI UploadFile as a multipart form would deliver it."""
    data = make_image_bytes() if content is None else content
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def make_bomb_bytes(width: int = 20000, height: int = 10000) -> bytes:
    """A 1x1 PNG whose header claims width x height, enough to trip Pillow's decompression bomb check."""
    png = bytearray(make_image_bytes(size=(1, 1)))
    # IHDR data starts after the signature, length and chunk type
    png[16:24] = struct.pack(">II", width, height)
    png[29:33] = struct.pack(">I", zlib.crc32(bytes(png[12:29])))
    return bytes(png)


def image_part(filename: str = "photo.png", color: str = "red") -> Tuple[str, bytes, str]:
    """httpx multipart file tuple for a PNG image."""
    return filename, make_image_bytes(color=color), "image/png"


def bucket_files(storage: StorageService, bucket: str) -> List[str]:
    """Relative paths of every object stored in a bucket."""
    root = storage.base_dir / bucket
    if not root.exists():
        return []
    return sorted(str(p.relative_to(root)) for p in root.rglob("*") if p.is_file())


def auth_headers(account: Account) -> Dict[str, str]:
    """Bearer header for an account."""
    token = create_access_token(user_id=account.id, email=account.email, role=account.role)
    return {"Authorization": f"Bearer {token}"}


# Database fixtures
@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database file per test."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'stayhub-test.db'}",
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


# Collaborator fixtures
@pytest.fixture
def storage_service(tmp_path) -> StorageService:
    """Object storage rooted in a per-test directory."""
    return StorageService(
        base_dir=str(tmp_path / "storage"),
        public_url=PUBLIC_STORAGE_URL,
        max_file_size=1024 * 1024,
        allowed_types=["image/jpeg", "image/png", "image/webp"],
    )


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
async def async_client(session_factory, storage_service, geocoder) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app with database, storage and geocoder overrides."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: storage_service
    app.dependency_overrides[get_geocoding_service] = lambda: geocoder

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def account_repository(db_session: AsyncSession) -> AccountRepository:
    return AccountRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    return ListingRepository(db_session)


@pytest.fixture
def review_repository(db_session: AsyncSession) -> ReviewRepository:
    return ReviewRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession, storage_service: StorageService) -> AuthService:
    return AuthService(db_session, storage=storage_service)


@pytest.fixture
def listing_service(db_session: AsyncSession, storage_service: StorageService, geocoder: FakeGeocoder) -> ListingService:
    return ListingService(db_session, storage=storage_service, geocoder=geocoder)


@pytest.fixture
def review_service(db_session: AsyncSession) -> ReviewService:
    return ReviewService(db_session)


# Test data factories
class AccountFactory:
    """Factory for creating test accounts."""

    @staticmethod
    async def create_account(
        account_repo: AccountRepository,
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        full_name: str = "Test Account",
        role: AccountRole = AccountRole.USER,
        is_approved: bool = False,
        **extra
    ) -> Account:
        """Create a test account in the database."""
        return await account_repo.create_account({
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_approved": is_approved,
            **extra,
        })


class ListingFactory:
    """Factory for creating test listings directly in the database."""

    @staticmethod
    async def create_listing(
        listing_repo: ListingRepository,
        owner_id: uuid.UUID,
        name: str = "Test Dormitory",
        location: str = "Bonifacio Global City, Taguig",
        price: Decimal = Decimal("2500.00"),
        **extra
    ) -> Listing:
        """Create a test listing in the database."""
        lat, lng = KNOWN_LOCATIONS["taguig"]
        return await listing_repo.create({
            "user_id": owner_id,
            "name": name,
            "description": "Air-conditioned rooms",
            "price": price,
            "location": location,
            "latitude": lat,
            "longitude": lng,
            **extra,
        })


# Common test fixtures
@pytest.fixture
async def test_user(account_repository: AccountRepository) -> Account:
    return await AccountFactory.create_account(
        account_repository,
        email="guest@test.com",
        full_name="Test Guest",
    )


@pytest.fixture
async def test_landlord(account_repository: AccountRepository) -> Account:
    """Approved landlord."""
    return await AccountFactory.create_account(
        account_repository,
        email="landlord@test.com",
        full_name="Test Landlord",
        role=AccountRole.LANDLORD,
        is_approved=True,
    )


@pytest.fixture
async def test_pending_landlord(account_repository: AccountRepository) -> Account:
    """Landlord awaiting approval."""
    return await AccountFactory.create_account(
        account_repository,
        email="pending@test.com",
        full_name="Pending Landlord",
        role=AccountRole.LANDLORD,
    )


@pytest.fixture
async def test_admin(account_repository: AccountRepository) -> Account:
    return await AccountFactory.create_account(
        account_repository,
        email="admin@test.com",
        full_name="Test Admin",
        role=AccountRole.ADMIN,
        is_approved=True,
    )


@pytest.fixture
async def test_listing(listing_repository: ListingRepository, test_landlord: Account) -> Listing:
    return await ListingFactory.create_listing(listing_repository, owner_id=test_landlord.id)


@pytest.fixture
async def test_review(review_repository: ReviewRepository, test_listing: Listing, test_user: Account) -> Review:
    return await review_repository.create({
        "hotel_id": test_listing.id,
        "user_id": test_user.id,
        "user_email": test_user.email,
        "rating": 4,
        "comment": "Great stay",
    })
