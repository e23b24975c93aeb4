from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

# Les clés JSON reprennent le contrat consommé par le front (camelCase catalan).
# Les montants sont sérialisés en chaîne : valeur décimale exacte.
# (alias aussi en validation : FastAPI re-valide la réponse dumpée par alias)


class DashboardRead(BaseModel):
    total_orders: int = Field(alias="totalComandes")
    total_spend: Decimal = Field(alias="despesaComandes")
    pending_orders: int = Field(alias="comandesPendents")

    class Config:
        from_attributes = True
        populate_by_name = True


class SupplierSpendRead(BaseModel):
    supplier_id: int = Field(alias="proveidorId")
    supplier_name: str = Field(alias="proveidor")
    order_count: int = Field(alias="numComandes")
    total_spend: Decimal = Field(alias="despesaTotal")
    percentage: Decimal = Field(alias="percentatge")

    class Config:
        from_attributes = True
        populate_by_name = True


class ProductRankingRead(BaseModel):
    product_id: int = Field(alias="producteId")
    product_name: str = Field(alias="nomProducte")
    total_quantity: Decimal = Field(alias="quantitatTotal")
    total_spend: Decimal = Field(alias="despesaTotal")

    class Config:
        from_attributes = True
        populate_by_name = True


class PeriodReportRead(BaseModel):
    period_start: datetime = Field(alias="dataInicial")
    period_end: datetime = Field(alias="dataFinal")
    total_orders: int = Field(alias="totalComandes")
    total_spend: Decimal = Field(alias="despesaTotal")
    average_spend: Decimal = Field(alias="comandaMitjana")
    supplier_spend: list[SupplierSpendRead] = Field(alias="despesaProveidors")
    top_products: list[ProductRankingRead] = Field(alias="topProductes")

    class Config:
        from_attributes = True
        populate_by_name = True

    @field_serializer("period_start", "period_end", when_used="json")
    def _format_period(self, value: datetime) -> str:
        return value.strftime("%Y-%m-%d %H:%M:%S")
