"""Listing routes: owner dashboard, two-step creation, edit/toggle/delete, public view and messages.

Owner-path failures (missing listing, wrong state, not the owner) raise
ListingAccessDenied and are turned into a redirect to the dashboard in app.main.
"""
import re

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse

from app.dependencies import get_current_user, get_image_storage, get_listing_service, get_optional_user
from app.exceptions import FormValidationError, ListingNotFound
from app.schemas.auth import UserPublic
from app.schemas.listing import (
    CatalogItem,
    CategorySection,
    DashboardResponse,
    HomeResponse,
    InboxResponse,
    ListingForm,
    ListingFormContext,
    ListingResponse,
    MessageForm,
    MessageResponse,
    OwnedListingResponse,
    PublicListingResponse,
)
from app.schemas.views import parse_form
from app.services.listings import MAX_ID, ListingService, is_owner
from app.services.storage import ImageStorage

router = APIRouter(tags=["listings"])

PAGE_PARAM = re.compile(r"^[1-9][0-9]*$")
DASHBOARD = "/mis-propiedades"


def listing_form_data(
    titulo: str = Form(""),
    descripcion: str = Form(""),
    categoria: str = Form(""),
    precio: str = Form(""),
    habitaciones: str = Form(""),
    estacionamiento: str = Form(""),
    wc: str = Form(""),
    calle: str = Form(""),
    lat: str = Form(""),
    lng: str = Form(""),
) -> dict:
    return {
        "titulo": titulo, "descripcion": descripcion, "categoria": categoria, "precio": precio,
        "habitaciones": habitaciones, "estacionamiento": estacionamiento, "wc": wc,
        "calle": calle, "lat": lat, "lng": lng,
    }


def _to_dashboard() -> RedirectResponse:
    return RedirectResponse(DASHBOARD, status_code=302)


def _form_context(listings: ListingService, page: str, data: dict | None = None, errors: list[dict] | None = None) -> ListingFormContext:
    categories, prices = listings.catalog()
    return ListingFormContext(
        page=page,
        categories=[CatalogItem.model_validate(c) for c in categories],
        prices=[CatalogItem.model_validate(p) for p in prices],
        data=data or {},
        errors=errors or [],
    )


def _listing_as_form(listing) -> dict:
    return {
        "titulo": listing.title, "descripcion": listing.description, "categoria": listing.category_id,
        "precio": listing.price_id, "habitaciones": listing.rooms, "estacionamiento": listing.parking,
        "wc": listing.bathrooms, "calle": listing.street, "lat": listing.lat, "lng": listing.lng,
    }


@router.get("/", response_model=HomeResponse)
def home(
    current_user: UserPublic | None = Depends(get_optional_user),
    listings: ListingService = Depends(get_listing_service),
):
    categories, prices = listings.catalog()
    return HomeResponse(
        categories=[CatalogItem.model_validate(c) for c in categories],
        prices=[CatalogItem.model_validate(p) for p in prices],
        sections=[
            CategorySection(
                category=CatalogItem.model_validate(category),
                listings=[ListingResponse.model_validate(row) for row in rows],
            )
            for category, rows in listings.latest_published()
        ],
        user=current_user.name if current_user else None,
    )


@router.get(DASHBOARD)
def dashboard(
    pagina: str | None = Query(None),
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    if not pagina or not PAGE_PARAM.match(pagina) or len(pagina) > len(str(MAX_ID)):
        return RedirectResponse(f"{DASHBOARD}?pagina=1", status_code=302)
    result = listings.list_owned(current_user, int(pagina))
    rows = []
    for listing, message_count in result.pop("listings"):
        row = OwnedListingResponse.model_validate(listing)
        row.message_count = message_count
        rows.append(row)
    return DashboardResponse(listings=rows, **result)


@router.get("/propiedades/crear", response_model=ListingFormContext)
def create_form(
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    return _form_context(listings, "Create listing")


@router.post("/propiedades/crear")
def create_listing(
    request: Request,
    data: dict = Depends(listing_form_data),
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    try:
        form = parse_form(ListingForm, data)
        listing = listings.create(current_user, form, request)
    except FormValidationError as e:
        context = _form_context(listings, "Create listing", data=data, errors=e.errors)
        return _bad_request(context)
    return RedirectResponse(f"/propiedades/agregar-imagen/{listing.id}", status_code=302)


def _bad_request(context: ListingFormContext):
    return JSONResponse(status_code=400, content=context.model_dump(mode="json"))


@router.get("/propiedades/agregar-imagen/{listing_id}", response_model=ListingResponse)
def add_image_form(
    listing_id: int,
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    return ListingResponse.model_validate(listings.get_for_image(listing_id, current_user))


@router.post("/propiedades/agregar-imagen/{listing_id}")
def store_image(
    request: Request,
    listing_id: int,
    imagen: UploadFile = File(...),
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    # Guard before touching the disk so rejected callers never leave files behind
    listing = listings.get_for_image(listing_id, current_user)
    try:
        filename = storage.save(imagen)
    except FormValidationError as e:
        return JSONResponse(status_code=400, content={"page": f"Add image: {listing.title}", "errors": e.errors})
    try:
        listings.attach_image(listing_id, current_user, filename, request)
    except Exception:
        # Lost the publication race or the update failed: the saved file belongs to nobody
        storage.delete(filename)
        raise
    return _to_dashboard()


@router.get("/propiedades/editar/{listing_id}", response_model=ListingFormContext)
def edit_form(
    listing_id: int,
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    listing = listings.get_for_edit(listing_id, current_user)
    return _form_context(listings, f"Edit listing: {listing.title}", data=_listing_as_form(listing))


@router.post("/propiedades/editar/{listing_id}")
def save_changes(
    request: Request,
    listing_id: int,
    data: dict = Depends(listing_form_data),
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    # Ownership first: field errors are only shown to the owner
    listings.get_for_edit(listing_id, current_user)
    try:
        form = parse_form(ListingForm, data)
        listings.update(listing_id, current_user, form, request)
    except FormValidationError as e:
        return _bad_request(_form_context(listings, "Edit listing", data=data, errors=e.errors))
    return _to_dashboard()


@router.post("/propiedades/eliminar/{listing_id}")
def delete_listing(
    request: Request,
    listing_id: int,
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    listings.delete(listing_id, current_user, request)
    return _to_dashboard()


@router.put("/propiedades/{listing_id}")
def toggle_listing(
    request: Request,
    listing_id: int,
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    listings.toggle_visibility(listing_id, current_user, request)
    return {"resultado": True}


@router.get("/propiedades/{listing_id}")
def show_listing(
    listing_id: int,
    current_user: UserPublic | None = Depends(get_optional_user),
    listings: ListingService = Depends(get_listing_service),
):
    try:
        listing = listings.view(listing_id)
    except ListingNotFound:
        return RedirectResponse("/404", status_code=302)
    return PublicListingResponse(
        page=listing.title,
        listing=ListingResponse.model_validate(listing),
        is_seller=is_owner(current_user, listing),
        user=current_user.name if current_user else None,
    )


@router.post("/propiedades/{listing_id}")
def send_message(
    listing_id: int,
    mensaje: str = Form(""),
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    try:
        form = parse_form(MessageForm, {"mensaje": mensaje})
        listings.post_message(listing_id, current_user, form)
    except ListingNotFound:
        return RedirectResponse("/404", status_code=302)
    except FormValidationError as e:
        try:
            listing = listings.view(listing_id)
        except ListingNotFound:
            return RedirectResponse("/404", status_code=302)
        body = PublicListingResponse(
            page=listing.title,
            listing=ListingResponse.model_validate(listing),
            is_seller=is_owner(current_user, listing),
            user=current_user.name,
        ).model_dump(mode="json")
        body["errors"] = e.errors
        return JSONResponse(status_code=400, content=body)
    return RedirectResponse("/", status_code=302)


@router.get("/mensajes/{listing_id}", response_model=InboxResponse)
def list_messages(
    listing_id: int,
    current_user: UserPublic = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    messages = listings.list_messages(listing_id, current_user)
    return InboxResponse(
        listing_id=listing_id,
        messages=[MessageResponse.model_validate(m) for m in messages],
    )
