"""Listings and the category/price catalog they reference."""
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(30), nullable=False, unique=True)


class Price(Base):
    __tablename__ = "prices"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(30), nullable=False, unique=True)  # e.g. "$10,000 - $30,000 USD"


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    price_id = Column(Integer, ForeignKey("prices.id"), nullable=False)

    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    rooms = Column(Integer, nullable=False)
    parking = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)
    street = Column(String(60), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)

    # Stored file name under UPLOAD_DIR; "" until the image step publishes the listing
    image = Column(String(255), nullable=False, default="")
    published = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", backref="listings")
    category = relationship("Category")
    price = relationship("Price")
    messages = relationship("Message", back_populates="listing", cascade="all, delete-orphan")
