"""
Moteur de reporting (dashboard + report global).

Règles métier :
    - seules les commandes "actives" comptent (PENDING, SENT, CONFIRMED, COMPLETED)
    - dashboard : mois calendaire courant, dépense = SUM(total_amount stocké)
    - report global : dépense recalculée depuis les lignes (prix unitaire x quantité),
      jamais depuis total_amount (qui peut être périmé)
    - arrondi HALF_UP à 2 décimales, uniquement sur les valeurs exposées
    - division par zéro -> 0

Propriétés :
    - déterministe (ordre des fournisseurs et du top produits fixé)
    - idempotent
    - aucun état partagé entre requêtes
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from backend.app.db.models.core_types import OrderStatus
from backend.services.ledger import (
    OrderRecord,
    fetch_orders_for_dashboard,
    fetch_orders_for_period,
)

logger = logging.getLogger(__name__)


ACTIVE_ORDER_STATUSES = frozenset(
    {
        OrderStatus.pending,
        OrderStatus.sent,
        OrderStatus.confirmed,
        OrderStatus.completed,
    }
)

TOP_PRODUCTS_LIMIT = 10

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------- VALEURS DE REPORT ----------
@dataclass(frozen=True)
class DashboardStats:
    total_orders: int
    total_spend: Decimal
    pending_orders: int


@dataclass(frozen=True)
class SupplierSpend:
    supplier_id: int
    supplier_name: str
    order_count: int
    total_spend: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class ProductRanking:
    product_id: int
    product_name: str
    total_quantity: Decimal
    total_spend: Decimal


@dataclass(frozen=True)
class PeriodReport:
    period_start: datetime
    period_end: datetime
    total_orders: int
    total_spend: Decimal
    average_spend: Decimal
    supplier_spend: tuple[SupplierSpend, ...] = ()
    top_products: tuple[ProductRanking, ...] = ()


# ---------- FILTRE ----------
def filter_active_orders(orders: Iterable[OrderRecord]) -> list[OrderRecord]:
    return [o for o in orders if o.status in ACTIVE_ORDER_STATUSES]


# ---------- DASHBOARD ----------
def current_month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Premier et dernier instant du mois calendaire de `now`."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime.combine(now.date().replace(day=1), time.min)
    end = datetime.combine(now.date().replace(day=last_day), time.max)
    return start, end


def aggregate_dashboard(orders: Iterable[OrderRecord]) -> DashboardStats:
    active = filter_active_orders(orders)
    return DashboardStats(
        total_orders=len(active),
        total_spend=sum((o.total_amount for o in active), ZERO),
        pending_orders=sum(1 for o in active if o.status == OrderStatus.pending),
    )


def compute_dashboard(
    db: Session,
    company_id: int,
    *,
    now: datetime | None = None,
) -> DashboardStats:
    start, end = current_month_bounds(now or datetime.now())
    orders = fetch_orders_for_dashboard(db, company_id, start, end)
    stats = aggregate_dashboard(orders)
    logger.info(
        "dashboard company=%s period=%s..%s orders=%d active=%d",
        company_id,
        start.date(),
        end.date(),
        len(orders),
        stats.total_orders,
    )
    return stats


# ---------- REPORT GLOBAL ----------
def _order_spend(order: OrderRecord) -> Decimal:
    return sum((item.subtotal for item in order.items), ZERO)


def _supplier_spend(active: list[OrderRecord], total_spend: Decimal) -> list[SupplierSpend]:
    groups: dict[int, dict] = {}
    for order in active:
        g = groups.setdefault(
            order.supplier_id,
            {"name": order.supplier_name, "count": 0, "spend": ZERO},
        )
        g["count"] += 1
        g["spend"] += _order_spend(order)

    rows = []
    for supplier_id, g in groups.items():
        spend = round_money(g["spend"])
        if total_spend > 0:
            percentage = round_money(spend * HUNDRED / total_spend)
        else:
            percentage = ZERO
        rows.append(
            SupplierSpend(
                supplier_id=supplier_id,
                supplier_name=g["name"],
                order_count=g["count"],
                total_spend=spend,
                percentage=percentage,
            )
        )

    rows.sort(key=lambda s: (-s.total_spend, s.supplier_name, s.supplier_id))
    return rows


def _top_products(active: list[OrderRecord], limit: int) -> list[ProductRanking]:
    groups: dict[int, dict] = {}
    for order in active:
        for item in order.items:
            g = groups.setdefault(
                item.product_id,
                {"name": item.product_name, "qty": ZERO, "spend": ZERO},
            )
            g["qty"] += item.quantity
            g["spend"] += item.subtotal

    ranking = [
        ProductRanking(
            product_id=product_id,
            product_name=g["name"],
            total_quantity=g["qty"],
            total_spend=round_money(g["spend"]),
        )
        for product_id, g in groups.items()
    ]
    # égalité de quantité : product_id croissant
    ranking.sort(key=lambda p: (-p.total_quantity, p.product_id))
    return ranking[:limit]


def build_period_report(
    orders: Iterable[OrderRecord],
    start: datetime,
    end: datetime,
    *,
    limit: int = TOP_PRODUCTS_LIMIT,
) -> PeriodReport:
    active = filter_active_orders(orders)

    total_orders = len(active)
    total_spend = sum((_order_spend(o) for o in active), ZERO)
    if total_orders > 0:
        average_spend = round_money(total_spend / Decimal(total_orders))
    else:
        average_spend = ZERO

    return PeriodReport(
        period_start=start,
        period_end=end,
        total_orders=total_orders,
        total_spend=total_spend,
        average_spend=average_spend,
        supplier_spend=tuple(_supplier_spend(active, total_spend)),
        top_products=tuple(_top_products(active, limit)),
    )


def compute_global_report(
    db: Session,
    company_id: int,
    start: datetime,
    end: datetime,
) -> PeriodReport:
    """
    Report global d'une entreprise sur [start, end].

    Période inversée (start > end) : pas une erreur, report à zéro
    sans interroger la base.
    """
    if start > end:
        logger.debug("global report company=%s: inverted period %s > %s", company_id, start, end)
        return build_period_report([], start, end)

    orders = fetch_orders_for_period(db, company_id, start, end)
    report = build_period_report(orders, start, end)
    logger.info(
        "global report company=%s period=%s..%s orders=%d active=%d suppliers=%d",
        company_id,
        start,
        end,
        len(orders),
        report.total_orders,
        len(report.supplier_spend),
    )
    return report
