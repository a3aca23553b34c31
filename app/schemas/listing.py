"""Listing forms and responses."""
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200
STREET_MAX_LENGTH = 60
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 200


class ListingForm(BaseModel):
    """Accepts the site's form field names: titulo, descripcion, habitaciones, etc."""
    title: str = Field("", alias="titulo")
    description: str = Field("", alias="descripcion")
    category_id: int | None = Field(None, alias="categoria")
    price_id: int | None = Field(None, alias="precio")
    rooms: int | None = Field(None, alias="habitaciones")
    parking: int | None = Field(None, alias="estacionamiento")
    bathrooms: int | None = Field(None, alias="wc")
    street: str = Field("", alias="calle")
    lat: float | None = None
    lng: float | None = None

    class Config:
        populate_by_name = True

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("The listing title is required")
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError("The title is too long")
        return v

    @field_validator("description")
    @classmethod
    def description_valid(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("The description is required")
        if len(v) > DESCRIPTION_MAX_LENGTH:
            raise ValueError("The description is too long")
        return v

    @field_validator("category_id", mode="before")
    @classmethod
    def category_required(cls, v):
        if v in (None, ""):
            raise ValueError("Select a category")
        return v

    @field_validator("price_id", mode="before")
    @classmethod
    def price_required(cls, v):
        if v in (None, ""):
            raise ValueError("Select a price range")
        return v

    @field_validator("rooms", "parking", "bathrooms", mode="before")
    @classmethod
    def count_required(cls, v):
        if v in (None, ""):
            raise ValueError("Select a quantity")
        return v

    @field_validator("rooms", "parking", "bathrooms")
    @classmethod
    def count_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Select a quantity")
        return v

    @field_validator("street")
    @classmethod
    def street_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Locate the listing on the map")
        if len(v) > STREET_MAX_LENGTH:
            raise ValueError("The street is too long")
        return v

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def coordinates_required(cls, v):
        if v in (None, ""):
            raise ValueError("Locate the listing on the map")
        return v

    @field_validator("lat")
    @classmethod
    def lat_range(cls, v: float) -> float:
        if not -90 <= v <= 90:
            raise ValueError("Locate the listing on the map")
        return v

    @field_validator("lng")
    @classmethod
    def lng_range(cls, v: float) -> float:
        if not -180 <= v <= 180:
            raise ValueError("Locate the listing on the map")
        return v


class MessageForm(BaseModel):
    text: str = Field("", alias="mensaje")

    class Config:
        populate_by_name = True

    @field_validator("text")
    @classmethod
    def text_length(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < MESSAGE_MIN_LENGTH:
            raise ValueError("The message cannot be empty or too short")
        if len(v) > MESSAGE_MAX_LENGTH:
            raise ValueError("The message is too long")
        return v


class CatalogItem(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ListingResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str
    rooms: int
    parking: int
    bathrooms: int
    street: str
    lat: float
    lng: float
    image: str
    published: bool
    category: CatalogItem | None = None
    price: CatalogItem | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class OwnedListingResponse(ListingResponse):
    message_count: int = 0


class DashboardResponse(BaseModel):
    page: str = "My listings"
    listings: list[OwnedListingResponse]
    pages: int
    current_page: int
    total: int
    offset: int
    limit: int


class PublicListingResponse(BaseModel):
    page: str
    listing: ListingResponse
    is_seller: bool = False
    user: str | None = None


class MessageSender(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    id: int
    text: str
    created_at: datetime | None = None
    sender: MessageSender

    class Config:
        from_attributes = True


class InboxResponse(BaseModel):
    page: str = "Messages"
    listing_id: int
    messages: list[MessageResponse]


class CategorySection(BaseModel):
    category: CatalogItem
    listings: list[ListingResponse]


class HomeResponse(BaseModel):
    page: str = "Home"
    categories: list[CatalogItem]
    prices: list[CatalogItem]
    sections: list[CategorySection]
    user: str | None = None


class ListingFormContext(BaseModel):
    """What the create/edit form needs: the catalog and the current values."""
    page: str
    categories: list[CatalogItem]
    prices: list[CatalogItem]
    data: dict = {}
    errors: list[dict] = []
