"""Listing ownership checks and the publication state machine.

Guards always run existence -> publication state -> ownership, and every failure
is a ListingAccessDenied subclass, so a probe for someone else's listing and a
probe for a missing id end in the same redirect.
"""
import logging
import math

from fastapi import Request
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.exceptions import (
    AssetDeletionError,
    FormValidationError,
    ImageRequired,
    ListingAlreadyPublished,
    ListingNotFound,
    NotListingOwner,
)
from app.models.listing import Category, Listing, Price
from app.models.message import Message
from app.schemas.auth import UserPublic
from app.schemas.listing import ListingForm, MessageForm
from app.services.audit_log import create_log, request_context, CATEGORY_LISTING
from app.services.storage import ImageStorage

log = logging.getLogger("uvicorn.error")

PAGE_SIZE = 10
HOME_LATEST = 3
# Largest value an INTEGER primary key can hold
MAX_ID = 2**63 - 1


def is_owner(user: UserPublic | None, listing: Listing) -> bool:
    return user is not None and str(user.id) == str(listing.owner_id)


class ListingService:
    def __init__(self, db: Session, storage: ImageStorage):
        self.db = db
        self.storage = storage

    # -- lookups and guards

    def _get(self, listing_id: int) -> Listing:
        if not 1 <= listing_id <= MAX_ID:
            raise ListingNotFound(listing_id)
        listing = self.db.query(Listing).filter(Listing.id == listing_id).first()
        if not listing:
            raise ListingNotFound(listing_id)
        return listing

    def _guard(self, listing_id: int, caller: UserPublic, *, unpublished: bool = False) -> Listing:
        listing = self._get(listing_id)
        if unpublished and (listing.published or listing.image):
            raise ListingAlreadyPublished(listing_id)
        if not is_owner(caller, listing):
            raise NotListingOwner(listing_id)
        return listing

    def _log(self, listing: Listing, caller: UserPublic, title: str, message: str, request: Request | None = None, meta=None) -> None:
        create_log(
            self.db,
            CATEGORY_LISTING,
            title,
            message,
            listing_id=listing.id,
            actor_user_id=caller.id,
            actor_email=caller.email,
            meta=meta,
            **request_context(request),
        )

    def catalog(self) -> tuple[list[Category], list[Price]]:
        return (
            self.db.query(Category).order_by(Category.id).all(),
            self.db.query(Price).order_by(Price.id).all(),
        )

    def _check_catalog(self, form: ListingForm) -> None:
        errors = []
        if not self.db.query(Category.id).filter(Category.id == form.category_id).first():
            errors.append({"field": "categoria", "msg": "Select a category"})
        if not self.db.query(Price.id).filter(Price.id == form.price_id).first():
            errors.append({"field": "precio", "msg": "Select a price range"})
        if errors:
            raise FormValidationError(errors)

    @staticmethod
    def _fields(form: ListingForm) -> dict:
        return form.model_dump(include={
            "title", "description", "category_id", "price_id", "rooms",
            "parking", "bathrooms", "street", "lat", "lng",
        })

    # -- owner operations

    def list_owned(self, owner: UserPublic, page: int) -> dict:
        offset = (page - 1) * PAGE_SIZE
        base = self.db.query(Listing).filter(Listing.owner_id == owner.id)
        total = base.count()
        # Pages past the end are empty; skip the query so huge offsets never reach the driver
        listings = [] if offset >= total else (
            base.options(joinedload(Listing.category), joinedload(Listing.price))
            .order_by(Listing.id)
            .offset(offset)
            .limit(PAGE_SIZE)
            .all()
        )
        counts = dict(
            self.db.query(Message.listing_id, func.count(Message.id))
            .filter(Message.listing_id.in_([row.id for row in listings]))
            .group_by(Message.listing_id)
            .all()
        ) if listings else {}
        return {
            "listings": [(row, counts.get(row.id, 0)) for row in listings],
            "pages": math.ceil(total / PAGE_SIZE),
            "current_page": page,
            "total": total,
            "offset": offset,
            "limit": PAGE_SIZE,
        }

    def create(self, owner: UserPublic, form: ListingForm, request: Request | None = None) -> Listing:
        """First phase: a draft with no image. Publication happens in attach_image."""
        self._check_catalog(form)
        listing = Listing(**self._fields(form), owner_id=owner.id, image="", published=False)
        self.db.add(listing)
        self.db.flush()
        self._log(listing, owner, "Listing created", f"Draft listing '{listing.title}' created (id={listing.id}).", request)
        self.db.commit()
        self.db.refresh(listing)
        return listing

    def get_for_image(self, listing_id: int, caller: UserPublic) -> Listing:
        return self._guard(listing_id, caller, unpublished=True)

    def attach_image(self, listing_id: int, caller: UserPublic, image_ref: str, request: Request | None = None) -> Listing:
        """Second phase: store the image and publish in one conditional UPDATE."""
        listing = self._guard(listing_id, caller, unpublished=True)
        updated = (
            self.db.query(Listing)
            .filter(
                Listing.id == listing.id,
                Listing.published.is_(False),
                Listing.image == "",
            )
            .update({Listing.image: image_ref, Listing.published: True}, synchronize_session=False)
        )
        if updated != 1:
            # Another request published it between the guard and the update
            self.db.rollback()
            raise ListingAlreadyPublished(listing_id)
        self._log(listing, caller, "Listing published", f"Image attached and listing {listing.id} published.", request, meta={"image": image_ref})
        self.db.commit()
        self.db.refresh(listing)
        return listing

    def get_for_edit(self, listing_id: int, caller: UserPublic) -> Listing:
        listing = self._get(listing_id)
        if listing.published:
            raise ListingAlreadyPublished(listing_id)
        if not is_owner(caller, listing):
            raise NotListingOwner(listing_id)
        return listing

    def update(self, listing_id: int, caller: UserPublic, form: ListingForm, request: Request | None = None) -> Listing:
        listing = self.get_for_edit(listing_id, caller)
        self._check_catalog(form)
        for key, value in self._fields(form).items():
            setattr(listing, key, value)
        self._log(listing, caller, "Listing updated", f"Listing {listing.id} edited.", request)
        self.db.commit()
        self.db.refresh(listing)
        return listing

    def toggle_visibility(self, listing_id: int, caller: UserPublic, request: Request | None = None) -> Listing:
        listing = self._guard(listing_id, caller)
        if not listing.published and not listing.image:
            # Drafts go public only through attach_image
            raise ImageRequired(listing_id)
        old = bool(listing.published)
        listing.published = not old
        self._log(listing, caller, "Listing visibility changed", f"Listing {listing.id} published={not old}.", request, meta={"old_value": old, "new_value": not old})
        self.db.commit()
        self.db.refresh(listing)
        return listing

    def delete(self, listing_id: int, caller: UserPublic, request: Request | None = None) -> None:
        """Remove the stored image first; the record is kept if that fails."""
        listing = self._guard(listing_id, caller)
        if listing.image:
            try:
                removed = self.storage.delete(listing.image)
            except OSError as e:
                raise AssetDeletionError(f"could not delete image {listing.image!r} of listing {listing.id}") from e
            if not removed:
                log.warning("Image %s of listing %s was already missing", listing.image, listing.id)
        self._log(listing, caller, "Listing deleted", f"Listing '{listing.title}' (id={listing.id}) deleted.", request, meta={"image": listing.image})
        self.db.delete(listing)
        self.db.commit()

    def list_messages(self, listing_id: int, caller: UserPublic) -> list[Message]:
        listing = self._guard(listing_id, caller)
        return (
            self.db.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.listing_id == listing.id)
            .order_by(Message.created_at, Message.id)
            .all()
        )

    # -- public operations

    def latest_published(self, limit: int = HOME_LATEST) -> list[tuple[Category, list[Listing]]]:
        """Newest published listings of every category, for the home page."""
        categories, _ = self.catalog()
        sections = []
        for category in categories:
            rows = (
                self.db.query(Listing)
                .options(joinedload(Listing.category), joinedload(Listing.price))
                .filter(Listing.category_id == category.id, Listing.published.is_(True))
                .order_by(Listing.created_at.desc(), Listing.id.desc())
                .limit(limit)
                .all()
            )
            sections.append((category, rows))
        return sections

    def view(self, listing_id: int) -> Listing:
        """Published listings only; drafts and hidden listings look missing."""
        if not 1 <= listing_id <= MAX_ID:
            raise ListingNotFound(listing_id)
        listing = (
            self.db.query(Listing)
            .options(joinedload(Listing.category), joinedload(Listing.price))
            .filter(Listing.id == listing_id)
            .first()
        )
        if not listing or not listing.published:
            raise ListingNotFound(listing_id)
        return listing

    def post_message(self, listing_id: int, sender: UserPublic, form: MessageForm) -> Message:
        listing = self._get(listing_id)
        if not (listing.published or is_owner(sender, listing)):
            raise ListingNotFound(listing_id)
        message = Message(listing_id=listing.id, sender_id=sender.id, text=form.text)
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message
