"""Bienes Raices – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import Base, SessionLocal, engine
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from app.models import User, Category, Price, Listing, Message, AuditLog  # noqa: F401
from app.exceptions import AssetDeletionError, FormValidationError, ListingAccessDenied, LoginRequired
from app.routers import auth, listings
from app.seed import seed_catalog

log = logging.getLogger("uvicorn.error")

settings = get_settings()
app = FastAPI(title=settings.app_name, debug=settings.debug)

app.include_router(auth.router)
app.include_router(listings.router)


@app.exception_handler(LoginRequired)
def login_required_handler(request: Request, exc: LoginRequired):
    response = RedirectResponse("/auth/login", status_code=302)
    if exc.clear_cookie:
        response.delete_cookie(settings.session_cookie_name)
    return response


@app.exception_handler(ListingAccessDenied)
def listing_access_handler(request: Request, exc: ListingAccessDenied):
    # Missing, wrong state and not-owner all look the same from outside
    return RedirectResponse("/mis-propiedades", status_code=302)


@app.exception_handler(FormValidationError)
def form_validation_handler(request: Request, exc: FormValidationError):
    return JSONResponse(status_code=400, content={"errors": exc.errors, "data": exc.data})


@app.exception_handler(SQLAlchemyError)
def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    log.error("Persistence failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Something went wrong, please try again."})


@app.exception_handler(AssetDeletionError)
def asset_deletion_handler(request: Request, exc: AssetDeletionError):
    log.error("Listing image cleanup failed: %s", exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "The listing could not be deleted, please try again."})


@app.on_event("startup")
def startup():
    try:
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            seed_catalog(db)
        finally:
            db.close()
    except SQLAlchemyError as e:
        log.warning("Database startup failed (tables/seed skipped). Check DATABASE_URL. Error: %s", e)
    if not (settings.mailgun_api_key and settings.mailgun_domain) and not settings.sendgrid_api_key:
        log.warning("Email is not configured - confirmation and reset emails will be skipped; set MAILGUN_API_KEY and MAILGUN_DOMAIN")


@app.get("/404", status_code=404)
def not_found():
    return {"page": "Not found", "message": "The page you are looking for does not exist"}


@app.get("/health")
def health():
    return {"status": "healthy"}
