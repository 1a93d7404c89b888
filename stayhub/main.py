"""
StayHub Listing API application.
Wires the routers, the error envelope handlers and the /storage routes.
"""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from pathlib import Path
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError as PydanticValidationError
import logging

from stayhub.config import settings
from stayhub.database import check_database_connection, close_db_connection, create_tables, get_db
from stayhub.routers import accounts_router, admin_router, listings_router, reviews_router, verification_router
from stayhub.utils.exceptions import APIException
from stayhub.services.error_handler import ErrorHandlerService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

DESCRIPTION = """
Marketplace for hotels, apartments and dormitories.

* Users and Landlords register; landlords upload a profile photo and an ID image
* Admins approve landlords before they can publish
* Landlords manage listings with images; addresses are geocoded on creation
* Anyone can search listings by location prefix and read reviews

Log in at `/login` and send the token as `Authorization: Bearer <token>`.
"""

TAGS = [
    {"name": "Accounts", "description": "Registration, login and profiles"},
    {"name": "Admin", "description": "Landlord approval and verification images"},
    {"name": "Listings", "description": "Listing management and search"},
    {"name": "Reviews", "description": "Listing reviews"},
    {"name": "Health", "description": "Service health"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} {settings.app_version} starting ({settings.environment})")

    for bucket in (settings.user_images_bucket, settings.listing_images_bucket):
        Path(settings.storage_dir, bucket).mkdir(parents=True, exist_ok=True)

    if await check_database_connection():
        await create_tables()
    else:
        logger.error("Starting without a database; requests touching it will fail")

    yield

    logger.info(f"{settings.app_name} stopping")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=DESCRIPTION,
    openapi_tags=TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

for router in (accounts_router, admin_router, listings_router, reviews_router):
    app.include_router(router, prefix=settings.api_prefix)

# Listing images are public; verification images go through an authenticated route
app.include_router(verification_router)
app.mount(
    f"/storage/{settings.listing_images_bucket}",
    StaticFiles(directory=Path(settings.storage_dir, settings.listing_images_bucket), check_dir=False),
    name="listing-images"
)


def _envelope(render):
    """Adapt an ErrorHandlerService method to FastAPI's (request, exc) handler signature."""
    async def handler(request: Request, exc: Exception):
        return render(exc, request)
    return handler


# Most specific first; every error leaves the API in the same envelope
EXCEPTION_HANDLERS = (
    (APIException, ErrorHandlerService.handle_api_exception),
    (RequestValidationError, ErrorHandlerService.handle_validation_error),
    (PydanticValidationError, ErrorHandlerService.handle_validation_error),
    (SQLAlchemyError, ErrorHandlerService.handle_database_error),
    (StarletteHTTPException, ErrorHandlerService.handle_http_exception),
    (Exception, ErrorHandlerService.handle_unexpected_error),
)

for exc_class, render in EXCEPTION_HANDLERS:
    app.add_exception_handler(exc_class, _envelope(render))


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "docs": "/docs",
        "api_prefix": settings.api_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness check that also round-trips to the database."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check could not reach the database: {e}")
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("stayhub.main:app", host=settings.host, port=settings.port, reload=settings.debug)
