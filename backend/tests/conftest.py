import os

# Base de test en mémoire : à positionner AVANT tout import backend.*
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.api.deps import get_db
from backend.app.db.base import Base
from backend.app.db.models.core_types import CompanyStatus, OrderStatus
from backend.app.db.models.models_v1 import (
    Company,
    User,
    Supplier,
    Product,
    Order,
    OrderItem,
)
from backend.app.main import app


@pytest.fixture(scope="function")
def engine():
    """SQLite en mémoire, une connexion partagée (StaticPool), schéma neuf par test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)
        eng.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


# ---------- Factories ----------
class LedgerFactory:
    """Crée les données maîtres et les commandes d'un test."""

    def __init__(self, db: Session):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def company(self, name: str = "ACME SL", **kw) -> Company:
        n = self._next()
        c = Company(
            name=name,
            tax_id=kw.pop("tax_id", f"TAX-{n}"),
            email=kw.pop("email", f"company{n}@test.cat"),
            status=kw.pop("status", CompanyStatus.active),
            **kw,
        )
        self.db.add(c)
        self.db.flush()
        return c

    def user(self, company: Company, email: str | None = None, **kw) -> User:
        u = User(
            company_id=company.id,
            email=email or f"user{self._next()}@test.cat",
            first_name="Test",
            **kw,
        )
        self.db.add(u)
        self.db.flush()
        return u

    def supplier(self, company: Company, name: str) -> Supplier:
        s = Supplier(company_id=company.id, name=name)
        self.db.add(s)
        self.db.flush()
        return s

    def product(self, supplier: Supplier, name: str, price: str = "10.00") -> Product:
        p = Product(supplier_id=supplier.id, name=name, price=Decimal(price))
        self.db.add(p)
        self.db.flush()
        return p

    def order(
        self,
        company: Company,
        supplier: Supplier,
        user: User,
        lines: list[tuple[Product, str, str]],
        *,
        status: OrderStatus = OrderStatus.pending,
        created_at: datetime | None = None,
        total_amount: str | None = None,
    ) -> Order:
        """lines = [(product, quantité, prix unitaire), ...]"""
        o = Order(
            company_id=company.id,
            supplier_id=supplier.id,
            user_id=user.id,
            name=f"PO-{self._next()}",
            status=status,
            created_at=created_at or datetime.now(),
        )
        for product, qty, price in lines:
            o.add_item(OrderItem(product_id=product.id, quantity=Decimal(qty), unit_price=Decimal(price)))
        if total_amount is not None:
            # total stocké volontairement incohérent
            o.total_amount = Decimal(total_amount)
        self.db.add(o)
        self.db.flush()
        return o


@pytest.fixture(scope="function")
def ledger(db_session) -> LedgerFactory:
    return LedgerFactory(db_session)
