"""
Shared fixtures: in-memory SQLite with the full schema, row factories.
Environment is set before homexrei is imported so settings pick it up.
"""
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_dummy")

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import homexrei.models  # noqa: F401  (registers tables)
from homexrei.db.base import Base
from homexrei.models.deal import Deal
from homexrei.models.insight import Insight
from homexrei.models.lead_charge import LeadCharge
from homexrei.models.user import User


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def no_celery_dispatch():
    """Outbox rows are written, but nothing is handed to a broker."""
    with patch("homexrei.services.notifications.service.NotificationService.dispatch", return_value=0) as m:
        yield m


def make_user(db, **kwargs) -> User:
    user = User(
        id=kwargs.get("id", str(uuid4())),
        email=kwargs.get("email", f"{uuid4().hex[:8]}@example.com"),
        full_name=kwargs.get("full_name", "Test User"),
        role=kwargs.get("role", "user"),
        credits=Decimal(str(kwargs.get("credits", 0))),
    )
    db.add(user)
    db.commit()
    return user


def make_deal(db, owner: User, **kwargs) -> Deal:
    deal = Deal(
        user_email=owner.email,
        deal_type=kwargs.get("deal_type", "sale"),
        title=kwargs.get("title", "3BR Ranch"),
        description=kwargs.get("description", "Updated ranch home near downtown"),
        location=kwargs.get("location", "12 Oak St, Austin, TX"),
        price=kwargs.get("price", 450000.0),
        bedrooms=kwargs.get("bedrooms", 3),
        bathrooms=kwargs.get("bathrooms", 2.0),
        sqft=kwargs.get("sqft", 1800),
        photo_urls=kwargs.get("photo_urls", ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]),
        owner_financing_available=kwargs.get("owner_financing_available", False),
        min_down_payment_percent=kwargs.get("min_down_payment_percent"),
        min_down_payment_amount=kwargs.get("min_down_payment_amount"),
        interest_rate=kwargs.get("interest_rate"),
        term_years=kwargs.get("term_years"),
        property_tax_annual=kwargs.get("property_tax_annual"),
        insurance_annual=kwargs.get("insurance_annual"),
        hoa_monthly=kwargs.get("hoa_monthly"),
        other_monthly_expenses=kwargs.get("other_monthly_expenses", []),
    )
    db.add(deal)
    db.commit()
    return deal


def make_insight(db, owner: User, **kwargs) -> Insight:
    insight = Insight(
        created_by=owner.email,
        title=kwargs.get("title", "Austin market update"),
        content=kwargs.get("content", "Prices are flat quarter over quarter"),
        photo_urls=kwargs.get("photo_urls", ["https://cdn.example.com/i.jpg"]),
    )
    db.add(insight)
    db.commit()
    return insight


def make_lead_charge(db, provider: User, **kwargs) -> LeadCharge:
    charge = LeadCharge(
        provider_email=provider.email,
        provider_name=provider.full_name,
        project_title=kwargs.get("project_title", "Kitchen remodel"),
        property_address=kwargs.get("property_address", "9 Elm St"),
        lead_amount=Decimal(str(kwargs.get("lead_amount", 25))),
        status=kwargs.get("status", "pending"),
        payment_date=kwargs.get("payment_date"),
        payment_method=kwargs.get("payment_method"),
    )
    db.add(charge)
    db.commit()
    return charge


@pytest.fixture
def user_factory(db):
    return lambda **kwargs: make_user(db, **kwargs)


@pytest.fixture
def deal_factory(db):
    return lambda owner, **kwargs: make_deal(db, owner, **kwargs)


@pytest.fixture
def insight_factory(db):
    return lambda owner, **kwargs: make_insight(db, owner, **kwargs)


@pytest.fixture
def lead_charge_factory(db):
    return lambda provider, **kwargs: make_lead_charge(db, provider, **kwargs)
