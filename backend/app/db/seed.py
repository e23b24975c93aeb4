from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select

from backend.app.core.config import settings
from backend.app.core.logging import configure_logging
from backend.app.db.session import SessionLocal
from backend.app.db.models.models_v1 import (
    Company,
    User,
    Supplier,
    Product,
    Order,
    OrderItem,
)
from backend.app.db.models.core_types import CompanyStatus, OrderStatus

logger = logging.getLogger(__name__)

DEMO_TAX_ID = "B00000000"
DEMO_EMAIL = "demo@abasta.cat"


def run_seed():
    db = SessionLocal()
    try:
        # 1) Entreprise démo
        company = db.scalar(select(Company).where(Company.tax_id == DEMO_TAX_ID))
        if company:
            logger.info("seed déjà présent (company id=%s)", company.id)
            return

        company = Company(
            name="Abasta Demo SL",
            tax_id=DEMO_TAX_ID,
            email=DEMO_EMAIL,
            address="Carrer Major 1",
            city="Barcelona",
            postal_code="08001",
            status=CompanyStatus.active,
        )
        db.add(company)
        db.flush()

        # 2) Utilisateur (X-User-Email pour l'API)
        user = User(company_id=company.id, email=DEMO_EMAIL, first_name="Demo")
        db.add(user)

        # 3) Fournisseurs + produits
        catalog = {
            "Fruites Maresme": [("Pomes", "2.40"), ("Taronges", "1.90")],
            "Forn Sant Jordi": [("Pa de pagès", "3.10"), ("Croissants", "1.20")],
        }
        products: dict[str, Product] = {}
        suppliers: dict[str, Supplier] = {}
        for supplier_name, items in catalog.items():
            supplier = Supplier(company_id=company.id, name=supplier_name)
            db.add(supplier)
            db.flush()
            suppliers[supplier_name] = supplier
            for product_name, price in items:
                p = Product(supplier_id=supplier.id, name=product_name, price=Decimal(price), unit="kg")
                db.add(p)
                products[product_name] = p
        db.flush()

        # 4) Commandes du mois (une rejetée : hors statistiques)
        now = datetime.now()
        orders = [
            ("Comanda fruita", "Fruites Maresme", OrderStatus.completed, [("Pomes", "12"), ("Taronges", "8")]),
            ("Comanda pa", "Forn Sant Jordi", OrderStatus.pending, [("Pa de pagès", "20")]),
            ("Comanda esmorzar", "Forn Sant Jordi", OrderStatus.confirmed, [("Croissants", "40")]),
            ("Comanda anul·lada", "Fruites Maresme", OrderStatus.rejected, [("Pomes", "100")]),
        ]
        for i, (name, supplier_name, status, lines) in enumerate(orders):
            order = Order(
                company_id=company.id,
                supplier_id=suppliers[supplier_name].id,
                user_id=user.id,
                name=name,
                status=status,
                created_at=now - timedelta(minutes=i),
            )
            for product_name, qty in lines:
                product = products[product_name]
                order.add_item(
                    OrderItem(product_id=product.id, quantity=Decimal(qty), unit_price=product.price)
                )
            db.add(order)

        db.commit()
        logger.info("SEED OK: company=%s user=%s", company.name, DEMO_EMAIL)
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging(settings.log_level)
    run_seed()
