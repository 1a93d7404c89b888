"""
Integration tests for all API endpoints.
Tests complete request/response cycles against the ASGI app with a per-test SQLite database.
"""

import pytest
import uuid
from datetime import datetime, timezone
from urllib.parse import urlparse
from httpx import AsyncClient
from fastapi import status

from stayhub.main import app
from stayhub.models.account import Account, AccountRole
from stayhub.repositories.account import AccountRepository
from stayhub.services.storage import StorageService
from stayhub.utils.dependencies import get_storage_service
from stayhub.utils.exceptions import GeocodingError
from tests.conftest import (
    TEST_PASSWORD,
    AccountFactory,
    ListingFactory,
    auth_headers,
    bucket_files,
    image_part,
    make_bomb_bytes,
    make_image_bytes,
)


def landlord_form(email: str = "owner@test.com") -> dict:
    return {
        "email": email,
        "password": TEST_PASSWORD,
        "full_name": "Maria Santos",
        "contact_number": "09171234567",
        "gender": "Female",
        "role": "Landlord",
    }


def listing_form(**overrides) -> dict:
    form = {
        "name": "Ermita Residences",
        "price": "1800",
        "location": "Ermita, Manila",
        "description": "Walking distance to the bay",
    }
    form.update(overrides)
    return form


class TestHealthEndpoints:
    """Integration tests for service info endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "testing"

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["database"] == "connected"


class TestAccountEndpoints:
    """Integration tests for registration, login and profiles."""

    @pytest.mark.asyncio
    async def test_register_user(self, async_client: AsyncClient):
        response = await async_client.post(
            "/register",
            data={"email": "Guest2@Test.com", "password": TEST_PASSWORD, "full_name": "Second Guest"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "message": "User registered successfully!"}

        login = await async_client.post("/login", json={"email": "guest2@test.com", "password": TEST_PASSWORD})
        assert login.json()["user"]["role"] == "User"
        assert login.json()["user"]["is_approved"] is False

    @pytest.mark.asyncio
    async def test_register_landlord_requires_both_images(self, async_client: AsyncClient, storage_service):
        response = await async_client.post(
            "/register",
            data=landlord_form(),
            files=[("profile_image", image_part("me.png"))],
        )

        data = response.json()
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert data["error"]["code"] == "MISSING_VERIFICATION_ASSETS"
        assert data["error"]["message"] == "Both Profile Image and ID Image are required for Landlords."
        assert bucket_files(storage_service, "user-images") == []

    @pytest.mark.asyncio
    async def test_register_landlord_with_oversized_image(self, async_client: AsyncClient, storage_service):
        response = await async_client.post(
            "/register",
            data=landlord_form(),
            files=[
                ("profile_image", image_part("me.png")),
                ("id_image", ("id.png", make_bomb_bytes(), "image/png")),
            ],
        )

        data = response.json()
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert data["error"]["details"][0]["field"] == "id.png"
        assert bucket_files(storage_service, "user-images") == []

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, async_client: AsyncClient, test_user: Account):
        response = await async_client.post(
            "/register",
            data={"email": test_user.email, "password": TEST_PASSWORD, "full_name": "Copy Cat"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.asyncio
    async def test_register_admin_rejected(self, async_client: AsyncClient):
        response = await async_client.post(
            "/register",
            data={"email": "boss@test.com", "password": TEST_PASSWORD, "full_name": "Boss", "role": "Admin"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_login_success(self, async_client: AsyncClient, test_landlord: Account):
        response = await async_client.post(
            "/login", json={"email": test_landlord.email, "password": TEST_PASSWORD}
        )

        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert data["success"] is True
        assert data["message"] == "Login successful!"
        assert data["user"]["id"] == str(test_landlord.id)
        assert data["user"]["role"] == "Landlord"
        assert "hashed_password" not in data["user"]
        assert data["token"]

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, async_client: AsyncClient):
        response = await async_client.post("/login", json={"email": "nobody@test.com", "password": TEST_PASSWORD})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Email not found"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, async_client: AsyncClient, test_user: Account):
        response = await async_client.post("/login", json={"email": test_user.email, "password": "wrongpassword"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Incorrect password"

    @pytest.mark.asyncio
    async def test_profile_access(self, async_client: AsyncClient, test_user: Account, test_landlord: Account,
                                  test_admin: Account):
        own = await async_client.get(f"/UserProfile/{test_user.id}", headers=auth_headers(test_user))
        other = await async_client.get(f"/UserProfile/{test_landlord.id}", headers=auth_headers(test_user))
        as_admin = await async_client.get(f"/UserProfile/{test_user.id}", headers=auth_headers(test_admin))

        assert own.status_code == status.HTTP_200_OK
        assert own.json()["user"]["email"] == test_user.email
        assert other.status_code == status.HTTP_403_FORBIDDEN
        assert as_admin.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_verification_images_are_private(self, async_client: AsyncClient, test_user: Account,
                                                   test_admin: Account):
        register = await async_client.post(
            "/register",
            data=landlord_form(email="served@test.com"),
            files=[("profile_image", image_part("me.png")), ("id_image", image_part("id.png"))],
        )
        assert register.status_code == status.HTTP_200_OK

        login = await async_client.post("/login", json={"email": "served@test.com", "password": TEST_PASSWORD})
        owner_headers = {"Authorization": f"Bearer {login.json()['token']}"}
        id_path = urlparse(login.json()["user"]["id_image_url"]).path

        anonymous = await async_client.get(id_path)
        stranger = await async_client.get(id_path, headers=auth_headers(test_user))
        owner = await async_client.get(id_path, headers=owner_headers)
        admin = await async_client.get(id_path, headers=auth_headers(test_admin))

        assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED
        assert stranger.status_code == status.HTTP_403_FORBIDDEN
        assert owner.status_code == status.HTTP_200_OK
        assert owner.content == make_image_bytes()
        assert admin.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_missing_verification_image(self, async_client: AsyncClient, test_admin: Account):
        headers = auth_headers(test_admin)

        missing = await async_client.get("/storage/user-images/ids/nothing.png", headers=headers)
        escaped = await async_client.get("/storage/user-images/..%2F..%2Fsecrets.txt", headers=headers)

        assert missing.status_code == status.HTTP_404_NOT_FOUND
        assert escaped.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_listing_images_are_public(self, async_client: AsyncClient, test_landlord: Account):
        app.dependency_overrides[get_storage_service] = lambda: StorageService.from_settings()

        created = await async_client.post(
            "/CreateHotels",
            data=listing_form(),
            files=[("frontdisplay", image_part("front.png"))],
            headers=auth_headers(test_landlord),
        )
        assert created.status_code == status.HTTP_200_OK

        served = await async_client.get(urlparse(created.json()["hotel"]["frontdisplay"]).path)

        assert served.status_code == status.HTTP_200_OK
        assert served.content == make_image_bytes()


class TestAdminEndpoints:
    """Integration tests for the landlord approval gate."""

    @pytest.mark.asyncio
    async def test_pending_and_approve(self, async_client: AsyncClient, test_admin: Account,
                                       test_pending_landlord: Account):
        headers = auth_headers(test_admin)

        pending = await async_client.get("/pending-landlords", headers=headers)
        assert [a["email"] for a in pending.json()["landlords"]] == ["pending@test.com"]

        approve = await async_client.put(f"/approve/{test_pending_landlord.id}", headers=headers)
        assert approve.status_code == status.HTTP_200_OK
        assert approve.json() == {"success": True, "message": "Landlord approved successfully."}

        again = await async_client.put(f"/approve/{test_pending_landlord.id}", headers=headers)
        assert again.status_code == status.HTTP_200_OK

        pending = await async_client.get("/pending-landlords", headers=headers)
        assert pending.json()["landlords"] == []

    @pytest.mark.asyncio
    async def test_approve_unknown_account(self, async_client: AsyncClient, test_admin: Account):
        response = await async_client.put(f"/approve/{uuid.uuid4()}", headers=auth_headers(test_admin))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_admin_endpoints_reject_non_admins(self, async_client: AsyncClient, test_landlord: Account,
                                                     test_pending_landlord: Account):
        headers = auth_headers(test_landlord)

        pending = await async_client.get("/pending-landlords", headers=headers)
        approve = await async_client.put(f"/approve/{test_pending_landlord.id}", headers=headers)

        assert pending.status_code == status.HTTP_403_FORBIDDEN
        assert approve.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_admin_endpoints_require_token(self, async_client: AsyncClient):
        response = await async_client.get("/pending-landlords")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestLandlordJourney:
    """End-to-end flow from landlord registration to a published listing."""

    @pytest.mark.asyncio
    async def test_register_approve_and_publish(self, async_client: AsyncClient, test_admin: Account,
                                                storage_service, geocoder):
        register = await async_client.post(
            "/register",
            data=landlord_form(),
            files=[("profile_image", image_part("me.png")), ("id_image", image_part("id.png"))],
        )
        assert register.status_code == status.HTTP_200_OK
        assert len(bucket_files(storage_service, "user-images")) == 2

        login = await async_client.post("/login", json={"email": "owner@test.com", "password": TEST_PASSWORD})
        landlord = login.json()["user"]
        landlord_headers = {"Authorization": f"Bearer {login.json()['token']}"}

        blocked = await async_client.post("/CreateHotels", data=listing_form(), headers=landlord_headers)
        assert blocked.status_code == status.HTTP_403_FORBIDDEN
        assert blocked.json()["error"]["code"] == "LANDLORD_NOT_APPROVED"
        assert geocoder.calls == []

        admin_headers = auth_headers(test_admin)
        pending = await async_client.get("/pending-landlords", headers=admin_headers)
        assert [a["id"] for a in pending.json()["landlords"]] == [landlord["id"]]

        approve = await async_client.put(f"/approve/{landlord['id']}", headers=admin_headers)
        assert approve.status_code == status.HTTP_200_OK

        created = await async_client.post(
            "/CreateHotels",
            data=listing_form(user_id=landlord["id"]),
            files=[
                ("frontdisplay", image_part("front.png")),
                ("room", image_part("room.png", color="blue")),
                ("others", image_part("o1.png")),
                ("others", image_part("o2.png", color="green")),
            ],
            headers=landlord_headers,
        )
        data = created.json()
        assert created.status_code == status.HTTP_200_OK
        assert data["message"] == "Hotel added successfully"
        hotel = data["hotel"]
        assert hotel["user_id"] == landlord["id"]
        assert hotel["price"] == 1800.0
        assert hotel["latitude"] == pytest.approx(14.5995)
        assert hotel["longitude"] == pytest.approx(120.9842)
        assert [url.rsplit("-", 1)[1] for url in hotel["others"]] == ["o1.png", "o2.png"]
        assert len(bucket_files(storage_service, "hotels-images")) == 4

        owned = await async_client.get(f"/hotels/{landlord['id']}")
        assert [h["id"] for h in owned.json()["hotels"]] == [hotel["id"]]

        everything = await async_client.get("/hotels")
        assert [h["id"] for h in everything.json()] == [hotel["id"]]


class TestListingEndpoints:
    """Integration tests for listing management endpoints."""

    @pytest.mark.asyncio
    async def test_create_requires_token(self, async_client: AsyncClient):
        response = await async_client.post("/CreateHotels", data=listing_form())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_create_as_guest(self, async_client: AsyncClient, test_user: Account):
        response = await async_client.post("/CreateHotels", data=listing_form(), headers=auth_headers(test_user))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_create_for_someone_else(self, async_client: AsyncClient, test_landlord: Account):
        response = await async_client.post(
            "/CreateHotels", data=listing_form(user_id=str(uuid.uuid4())), headers=auth_headers(test_landlord)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_create_invalid_price(self, async_client: AsyncClient, test_landlord: Account):
        response = await async_client.post(
            "/CreateHotels", data=listing_form(price="-10"), headers=auth_headers(test_landlord)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["details"][0]["field"] == "price"

    @pytest.mark.asyncio
    async def test_create_unresolvable_location(self, async_client: AsyncClient, test_landlord: Account,
                                                storage_service):
        response = await async_client.post(
            "/CreateHotels",
            data=listing_form(location="Atlantis"),
            files=[("frontdisplay", image_part())],
            headers=auth_headers(test_landlord),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "LOCATION_NOT_RESOLVED"
        assert bucket_files(storage_service, "hotels-images") == []

    @pytest.mark.asyncio
    async def test_create_when_geocoder_fails(self, async_client: AsyncClient, test_landlord: Account, geocoder):
        geocoder.fail_with = GeocodingError("provider returned 503")

        response = await async_client.post("/CreateHotels", data=listing_form(), headers=auth_headers(test_landlord))

        data = response.json()
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert data["error"]["code"] == "UPSTREAM_ERROR"
        assert "503" not in data["error"]["message"]

    @pytest.mark.asyncio
    async def test_get_listing(self, async_client: AsyncClient, test_listing):
        found = await async_client.get(f"/EditHotels/{test_listing.id}")
        missing = await async_client.get(f"/EditHotels/{uuid.uuid4()}")

        assert found.status_code == status.HTTP_200_OK
        assert found.json()["name"] == test_listing.name
        assert found.json()["others"] == []
        assert missing.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_listing(self, async_client: AsyncClient, test_landlord: Account, test_listing):
        response = await async_client.put(
            f"/EditHotels/{test_listing.id}",
            data={"name": "Renovated Dormitory", "price": "2750.50"},
            files=[("room", image_part("new-room.png"))],
            headers=auth_headers(test_landlord),
        )

        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert data["message"] == "Hotel updated successfully"
        assert data["hotel"]["name"] == "Renovated Dormitory"
        assert data["hotel"]["price"] == 2750.5
        assert data["hotel"]["location"] == test_listing.location
        assert data["hotel"]["room"].endswith("-new-room.png")

    @pytest.mark.asyncio
    async def test_update_without_fields(self, async_client: AsyncClient, test_landlord: Account, test_listing):
        response = await async_client.put(f"/EditHotels/{test_listing.id}", headers=auth_headers(test_landlord))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "No valid fields provided for update"

    @pytest.mark.asyncio
    async def test_update_by_other_landlord(self, async_client: AsyncClient, account_repository: AccountRepository,
                                            test_listing):
        other = await AccountFactory.create_account(account_repository, role=AccountRole.LANDLORD, is_approved=True)

        response = await async_client.put(
            f"/EditHotels/{test_listing.id}", data={"name": "Hijacked"}, headers=auth_headers(other)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_delete_listing(self, async_client: AsyncClient, test_landlord: Account, test_listing, test_review):
        response = await async_client.delete(f"/hotels/{test_listing.id}", headers=auth_headers(test_landlord))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert response.content == b""

        gone = await async_client.get(f"/EditHotels/{test_listing.id}")
        reviews = await async_client.get(f"/reviews/{test_listing.id}")
        again = await async_client.delete(f"/hotels/{test_listing.id}", headers=auth_headers(test_landlord))

        assert gone.status_code == status.HTTP_404_NOT_FOUND
        assert reviews.json() == []
        assert again.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_by_guest(self, async_client: AsyncClient, test_user: Account, test_listing):
        response = await async_client.delete(f"/hotels/{test_listing.id}", headers=auth_headers(test_user))

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestSearchEndpoint:
    """Integration tests for location prefix search."""

    @pytest.mark.asyncio
    async def test_search_by_location_prefix(self, async_client: AsyncClient, listing_repository,
                                             test_landlord: Account):
        taguig = await ListingFactory.create_listing(
            listing_repository, owner_id=test_landlord.id, name="BGC Lofts", location="Taguig, BGC"
        )
        await ListingFactory.create_listing(
            listing_repository, owner_id=test_landlord.id, name="QC Dorm", location="Quezon City, Diliman"
        )

        response = await async_client.get("/search", params={"location": "taguig"})

        assert response.status_code == status.HTTP_200_OK
        assert [h["id"] for h in response.json()] == [str(taguig.id)]

    @pytest.mark.asyncio
    async def test_search_without_matches(self, async_client: AsyncClient, test_listing):
        response = await async_client.get("/search", params={"location": "Cebu"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []


class TestReviewEndpoints:
    """Integration tests for review endpoints."""

    @pytest.mark.asyncio
    async def test_submit_and_list_reviews(self, async_client: AsyncClient, review_repository, test_user: Account,
                                           test_listing):
        await review_repository.create({
            "hotel_id": test_listing.id, "user_id": test_user.id, "user_email": test_user.email,
            "rating": 3, "comment": "Older review", "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        })

        submitted = await async_client.post(
            "/reviews",
            json={"hotel_id": str(test_listing.id), "rating": 5, "comment": "Spotless rooms"},
            headers=auth_headers(test_user),
        )

        assert submitted.status_code == status.HTTP_201_CREATED
        assert submitted.json()["user_email"] == test_user.email
        assert submitted.json()["user_id"] == str(test_user.id)

        listed = await async_client.get(f"/reviews/{test_listing.id}")
        assert [r["comment"] for r in listed.json()] == ["Spotless rooms", "Older review"]

    @pytest.mark.asyncio
    async def test_review_requires_token(self, async_client: AsyncClient, test_listing):
        response = await async_client.post(
            "/reviews", json={"hotel_id": str(test_listing.id), "comment": "Anonymous"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_review_for_missing_listing(self, async_client: AsyncClient, test_user: Account):
        response = await async_client.post(
            "/reviews",
            json={"hotel_id": str(uuid.uuid4()), "comment": "Where is it?"},
            headers=auth_headers(test_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
