"""
Shared pytest fixtures for the SportSpot booking core.

Every test gets a fresh in-memory SQLite database so services can commit
freely without leaking state between tests.
"""

from decimal import Decimal
import os

# Must be set before app.core.config is imported anywhere.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CI", "1")
os.environ["REDIS_URL"] = ""

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import create_db_engine, init_db
from app.models import SportField, User
from app.schemas.wallet import DepositRequest
from app.services.wallet_ledger import WalletLedger


@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite:///:memory:", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    SessionFactory = sessionmaker(
        bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = SessionFactory()
    try:
        yield session
    finally:
        session.close()


def _make_user(db: Session, uname: str = "Dana", role: str = "customer") -> User:
    user = User(uname=uname, email=f"{uname.lower()}@example.com", role=role)
    db.add(user)
    db.commit()
    return user


def _make_field(db: Session, price: str = "20.00", name: str = "Court 1") -> SportField:
    field = SportField(name=name, sport_type="tennis", price_per_hour=Decimal(price))
    db.add(field)
    db.commit()
    return field


def _fund(db: Session, user_id: str, amount: str) -> Decimal:
    result = WalletLedger(db).deposit(
        DepositRequest(user_id=user_id, amount=Decimal(amount), method="paypal")
    )
    return result.balance


@pytest.fixture
def user_factory(db):
    return lambda uname="Dana", role="customer": _make_user(db, uname, role)


@pytest.fixture
def field_factory(db):
    return lambda price="20.00", name="Court 1": _make_field(db, price, name)


@pytest.fixture
def fund_wallet(db):
    """Deposit ``amount`` for a user through the ledger; returns the new balance."""
    return lambda user_id, amount: _fund(db, user_id, amount)


@pytest.fixture
def customer(user_factory) -> User:
    return user_factory("Dana")


@pytest.fixture
def other_customer(user_factory) -> User:
    return user_factory("Riley")


@pytest.fixture
def field(field_factory) -> SportField:
    return field_factory("20.00")


@pytest.fixture
def funded_customer(customer, fund_wallet) -> User:
    fund_wallet(customer.id, "100.00")
    return customer
