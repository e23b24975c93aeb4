"""
Lecture du registre de commandes.

Ce module est la seule frontière entre la base et le moteur de reporting :
il matérialise des instantanés immuables (OrderRecord / LineItem) pour une
entreprise et une période, et résout l'entreprise de l'utilisateur courant.

Aucun calcul de reporting ici : voir backend.services.reporting
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import NotFoundError
from backend.app.db.models.core_types import OrderStatus
from backend.app.db.models.models_v1 import (
    Company,
    Order,
    OrderItem,
    Supplier,
    User,
)


# ---------- SNAPSHOTS ----------
@dataclass(frozen=True)
class LineItem:
    product_id: int
    product_name: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderRecord:
    id: int
    company_id: int
    supplier_id: int
    supplier_name: str
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    delivery_date: date | None = None
    items: tuple[LineItem, ...] = ()


@dataclass(frozen=True)
class CompanyMeta:
    id: int
    name: str
    tax_id: str
    email: str
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None


# ---------- IDENTITÉ ----------
def resolve_company_id(db: Session, user_email: str) -> int:
    """
    Retourne l'id de l'entreprise de l'utilisateur (email insensible à la casse).
    Utilisateur inconnu ou inactif -> NotFoundError.
    """
    email = (user_email or "").strip()
    user = (
        db.execute(
            select(User)
            .where(func.lower(User.email) == email.lower())
            .where(User.is_active.is_(True))
        )
        .scalars()
        .first()
    )
    if not user:
        raise NotFoundError(f"Usuari no trobat: {email}")
    return int(user.company_id)


def fetch_company_meta(db: Session, company_id: int) -> CompanyMeta:
    company = db.get(Company, company_id)
    if not company:
        raise NotFoundError(f"Empresa no trobada: {company_id}")
    return CompanyMeta(
        id=int(company.id),
        name=company.name,
        tax_id=company.tax_id,
        email=company.email,
        address=company.address,
        city=company.city,
        postal_code=company.postal_code,
    )


# ---------- COMMANDES ----------
def _orders_in_period(company_id: int, start: datetime, end: datetime):
    # bornes incluses sur created_at
    return (
        select(Order, Supplier.name)
        .join(Supplier, Supplier.id == Order.supplier_id)
        .where(Order.company_id == company_id)
        .where(Order.created_at >= start)
        .where(Order.created_at <= end)
        .order_by(Order.created_at.asc(), Order.id.asc())
    )


def _to_record(order: Order, supplier_name: str, items: tuple[LineItem, ...] = ()) -> OrderRecord:
    return OrderRecord(
        id=int(order.id),
        company_id=int(order.company_id),
        supplier_id=int(order.supplier_id),
        supplier_name=supplier_name,
        status=order.status,
        total_amount=Decimal(order.total_amount),
        created_at=order.created_at,
        delivery_date=order.delivery_date,
        items=items,
    )


def fetch_orders_for_dashboard(
    db: Session,
    company_id: int,
    start: datetime,
    end: datetime,
) -> list[OrderRecord]:
    """Commandes de la période, SANS les lignes (le dashboard lit total_amount)."""
    rows = db.execute(_orders_in_period(company_id, start, end)).all()
    return [_to_record(order, supplier_name) for order, supplier_name in rows]


def fetch_orders_for_period(
    db: Session,
    company_id: int,
    start: datetime,
    end: datetime,
) -> list[OrderRecord]:
    """Commandes de la période AVEC leurs lignes et le nom des produits."""
    stmt = _orders_in_period(company_id, start, end).options(
        selectinload(Order.items).selectinload(OrderItem.product)
    )
    rows = db.execute(stmt).all()

    records = []
    for order, supplier_name in rows:
        items = tuple(
            LineItem(
                product_id=int(it.product_id),
                product_name=it.product.name,
                quantity=Decimal(it.quantity),
                unit_price=Decimal(it.unit_price),
            )
            for it in order.items
        )
        records.append(_to_record(order, supplier_name, items))
    return records
