"""
Domain errors raised by the services and rendered by ErrorHandlerService.
Each class fixes an HTTP status and a machine-readable error code.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """HTTPException that also carries an error code for the response envelope."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class BadRequestError(APIException):
    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, error_code)


class ValidationError(BadRequestError):
    """
    A field was missing or malformed.
    field_errors lists {"field", "message"} pairs for the response details.
    """

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(detail, error_code)
        self.field_errors = field_errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, field_errors=[{"field": field, "message": message}])


class UnauthorizedError(APIException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED, detail, "UNAUTHORIZED", headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    def __init__(self, detail: str = "Access forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, error_code)


class NotFoundError(APIException):
    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found" + (f" with ID: {resource_id}" if resource_id else "")
        super().__init__(status.HTTP_404_NOT_FOUND, detail, "NOT_FOUND")


class ConflictError(APIException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail, "CONFLICT")


class UpstreamError(APIException):
    """
    Storage or geocoding failed underneath a request.
    upstream_detail is logged; the client sees it only in debug mode.
    """

    def __init__(self, service: str, detail: str):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, f"{service} failed: {detail}", "UPSTREAM_ERROR")
        self.service = service
        self.upstream_detail = detail


class StorageError(UpstreamError):
    def __init__(self, detail: str):
        super().__init__("Storage", detail)


class GeocodingError(UpstreamError):
    def __init__(self, detail: str):
        super().__init__("Geocoding", detail)


# Authentication

class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, detail: str = "Incorrect password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


# Accounts

class AccountNotFoundError(NotFoundError):
    def __init__(self, account_id: str):
        super().__init__("Account", account_id)


class EmailNotFoundError(NotFoundError):
    """Login with an email that has no account; reported as a plain 404."""

    def __init__(self):
        super().__init__("Email")


class DuplicateResourceError(ConflictError):
    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


class MissingVerificationAssetsError(ValidationError):
    """A landlord registered without both the profile and the ID image."""

    def __init__(self, missing: List[str]):
        super().__init__(
            "Both Profile Image and ID Image are required for Landlords.",
            field_errors=[{"field": name, "message": "This file is required for Landlords"} for name in missing],
            error_code="MISSING_VERIFICATION_ASSETS"
        )


class LandlordNotApprovedError(ForbiddenError):
    def __init__(self, detail: str = "Your landlord account is awaiting admin approval"):
        super().__init__(detail, error_code="LANDLORD_NOT_APPROVED")


# Listings

class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str):
        super().__init__("Hotel", listing_id)


class ListingOwnershipError(ForbiddenError):
    def __init__(self, detail: str = "You don't own this listing"):
        super().__init__(detail)


class LocationNotResolvedError(BadRequestError):
    """The geocoder found nothing for the submitted location text."""

    def __init__(self, location: str):
        super().__init__(
            f"Location '{location}' could not be found. Please enter a valid address.",
            error_code="LOCATION_NOT_RESOLVED"
        )
        self.location = location


class LocationOutsideServiceAreaError(BadRequestError):
    """The location resolved, but outside the configured service area."""

    def __init__(self, location: str):
        super().__init__(
            f"Location '{location}' is outside the supported service area.",
            error_code="LOCATION_OUTSIDE_SERVICE_AREA"
        )
        self.location = location


# Uploads

class FileUploadError(BadRequestError):
    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}")


class UnsupportedFileTypeError(FileUploadError):
    def __init__(self, file_type: str, supported_types: List[str]):
        super().__init__(f"Unsupported file type '{file_type}'. Supported types: {', '.join(supported_types)}")


class FileSizeExceededError(FileUploadError):
    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")
