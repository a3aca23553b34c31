"""Shared dependencies: DB session, services, and the access gate for protected routes."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.exceptions import InvalidProof, LoginRequired
from app.schemas.auth import UserPublic
from app.services.accounts import AccountService
from app.services.auth import SessionProofService
from app.services.credentials import CredentialStore
from app.services.listings import ListingService
from app.services.notifications import EmailNotifier
from app.services.storage import ImageStorage


def get_session_proofs(settings: Settings = Depends(get_settings)) -> SessionProofService:
    return SessionProofService.from_settings(settings)


def get_credential_store(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CredentialStore:
    return CredentialStore(db, bcrypt_rounds=settings.bcrypt_rounds)


def get_notifier(settings: Settings = Depends(get_settings)) -> EmailNotifier:
    return EmailNotifier(settings)


def get_image_storage(settings: Settings = Depends(get_settings)) -> ImageStorage:
    return ImageStorage(settings.upload_dir, max_bytes=settings.max_image_bytes)


def get_account_service(
    db: Session = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
    proofs: SessionProofService = Depends(get_session_proofs),
    notifier=Depends(get_notifier),
) -> AccountService:
    return AccountService(db, store, proofs, notifier)


def get_listing_service(
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
) -> ListingService:
    return ListingService(db, storage)


def _resolve_user(
    request: Request,
    settings: Settings,
    proofs: SessionProofService,
    store: CredentialStore,
) -> UserPublic:
    token_str = (request.cookies.get(settings.session_cookie_name) or "").strip()
    if not token_str:
        raise LoginRequired()
    try:
        claims = proofs.verify(token_str)
    except InvalidProof:
        # Forged or corrupted proof: treat as logout
        raise LoginRequired(clear_cookie=True)
    user = store.find_by_id(claims["user_id"])
    if not user:
        raise LoginRequired()
    request.state.user = user
    return user


def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    proofs: SessionProofService = Depends(get_session_proofs),
    store: CredentialStore = Depends(get_credential_store),
) -> UserPublic:
    """Access gate: cookie -> verified proof -> live user (password-stripped). Redirects to login otherwise."""
    return _resolve_user(request, settings, proofs, store)


def get_optional_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    proofs: SessionProofService = Depends(get_session_proofs),
    store: CredentialStore = Depends(get_credential_store),
) -> UserPublic | None:
    """Same resolution for public pages; anonymous callers get None instead of a redirect."""
    try:
        return _resolve_user(request, settings, proofs, store)
    except LoginRequired:
        return None
