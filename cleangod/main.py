import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ALLOWED_ORIGINS, DATABASE_URL
from .database import Database
from .domain.addresses.router import router as addresses_router
from .domain.admin.router import router as admin_router
from .domain.booking.router import bookings_router, payments_router
from .domain.booking.router import router as booking_router
from .domain.cart.router import router as cart_router
from .domain.catalog.router import router as catalog_router
from .domain.coupons.router import router as coupons_router
from .domain.coupons.service import seed_default_coupons
from .domain.orders.router import router as orders_router
from .domain.users.router import router as users_router
from .retry import COLLABORATOR_ERRORS
from .security_headers import SecurityHeadersMiddleware
from .storage import KeyValueStore, build_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    database: Database = app.state.database
    database.create_all()
    logger.info("Database tables created successfully")

    db = database.session()
    try:
        seed_default_coupons(db)
    finally:
        db.close()

    yield
    logger.info("Application shutting down...")
    database.dispose()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold the raised ValueError itself
    return [
        {key: (str(value) if key == "ctx" else value) for key, value in error.items()}
        for error in exc.errors()
    ]


def create_app(
    database: Optional[Database] = None, storage: Optional[KeyValueStore] = None
) -> FastAPI:
    """
    Build the API with its collaborators.

    Run with: uvicorn cleangod.main:create_app --factory
    """
    app = FastAPI(title="CleanGod API", version="1.0.0", lifespan=lifespan)
    app.state.database = database or Database(DATABASE_URL)
    app.state.storage = storage or build_storage()

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
            raise

    if SECURITY_HEADERS_ENABLED:
        app.add_middleware(
            SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
        )
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        expose_headers=["X-Redirect-To", "Retry-After"],
    )

    # Routes
    app.include_router(catalog_router)
    app.include_router(coupons_router)
    app.include_router(cart_router)
    app.include_router(booking_router)
    app.include_router(bookings_router)
    app.include_router(payments_router)
    app.include_router(addresses_router)
    app.include_router(orders_router)
    app.include_router(users_router)
    app.include_router(admin_router)

    @app.get("/")
    def root():
        return {"message": "CleanGod API is running"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.get("/health/storage")
    def storage_health_check(request: Request):
        """Check the cart and draft storage backend for monitoring"""
        store: KeyValueStore = request.app.state.storage
        try:
            start_time = time.time()
            store.ping()
            response_time = (time.time() - start_time) * 1000
        except COLLABORATOR_ERRORS as e:
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "storage": {"connected": False, "error": str(e)}},
            )
        return {
            "status": "healthy",
            "storage": {
                "backend": type(store).__name__,
                "connected": True,
                "response_time_ms": round(response_time, 2),
            },
        }

    return app
