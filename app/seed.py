"""Seed the category and price catalog that listings reference."""
from sqlalchemy.orm import Session
from app.models.listing import Category, Price

CATEGORIES = ["House", "Apartment", "Warehouse", "Land", "Cabin"]

PRICES = [
    "0 - $10,000 USD",
    "$10,000 - $30,000 USD",
    "$30,000 - $50,000 USD",
    "$50,000 - $75,000 USD",
    "$75,000 - $100,000 USD",
    "$150,000 - $200,000 USD",
    "$300,000 - $500,000 USD",
    "+ $500,000 USD",
]


def seed_catalog(db: Session) -> None:
    if db.query(Category).count() == 0:
        for name in CATEGORIES:
            db.add(Category(name=name))
    if db.query(Price).count() == 0:
        for name in PRICES:
            db.add(Price(name=name))
    db.commit()
