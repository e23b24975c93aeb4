"""
Rendu PDF du report global.

Le document présente le report tel quel : aucun chiffre n'est recalculé ici.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from backend.app.core.errors import ReportRenderingError
from backend.services.ledger import CompanyMeta
from backend.services.reporting import PeriodReport, round_money

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SUPPLIER_COLUMNS = (("Proveïdor", 70), ("Num Comandes", 35), ("Despesa Total", 40), ("% del total", 35))
PRODUCT_COLUMNS = (("Nom Producte", 90), ("Quantitat Total", 45), ("Despesa Total", 45))


def _latin1(text: object) -> str:
    # les polices PDF de base ne couvrent que latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _money(value: Decimal) -> str:
    return f"{round_money(value):.2f}"


class ReportPDF(FPDF):
    def line_text(self, text: str, h: float = 7) -> None:
        self.cell(0, h, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def subtitle(self, text: str) -> None:
        self.ln(6)
        self.set_font("Helvetica", "B", 14)
        self.line_text(text, h=9)
        self.set_font("Helvetica", size=11)
        self.ln(2)

    def table(self, columns, rows) -> None:
        self.set_font("Helvetica", "B", 10)
        for title, width in columns:
            self.cell(width, 8, _latin1(title), border=1)
        self.ln()
        self.set_font("Helvetica", size=10)
        for row in rows:
            for (_, width), value in zip(columns, row):
                self.cell(width, 8, _latin1(value), border=1)
            self.ln()
        self.set_font("Helvetica", size=11)


def _company_header(pdf: ReportPDF, company: CompanyMeta) -> None:
    pdf.set_font("Helvetica", "B", 12)
    pdf.line_text(company.name, h=6)
    pdf.set_font("Helvetica", size=9)
    pdf.line_text(f"NIF: {company.tax_id}", h=5)
    if company.address:
        pdf.line_text(company.address, h=5)
    locality = " ".join(p for p in (company.postal_code, company.city) if p)
    if locality:
        pdf.line_text(locality, h=5)
    pdf.line_text(company.email, h=5)


def render_report_document(report: PeriodReport, company: CompanyMeta) -> bytes:
    """Construit le PDF du report global et retourne ses octets."""
    try:
        pdf = ReportPDF()
        pdf.set_title(_latin1(f"Report Global - {company.name}"))
        pdf.add_page()

        _company_header(pdf, company)
        pdf.ln(6)

        pdf.set_font("Helvetica", "B", 18)
        pdf.set_text_color(0, 0, 255)
        pdf.line_text("Report Global", h=10)
        pdf.set_text_color(0, 0, 0)

        pdf.set_font("Helvetica", size=11)
        pdf.ln(4)
        pdf.line_text(
            f"Període: de {_fmt_date(report.period_start)} a {_fmt_date(report.period_end)}"
        )

        pdf.subtitle("Resum global")
        pdf.line_text(f"Total comandes: {report.total_orders}")
        pdf.line_text(f"Despesa total: {_money(report.total_spend)}")
        pdf.line_text(f"Comanda mitjana: {report.average_spend}")

        pdf.subtitle("Despesa proveïdors")
        pdf.table(
            SUPPLIER_COLUMNS,
            [
                (s.supplier_name, s.order_count, s.total_spend, s.percentage)
                for s in report.supplier_spend
            ],
        )

        pdf.subtitle("Top Productes")
        pdf.table(
            PRODUCT_COLUMNS,
            [
                (p.product_name, p.total_quantity, p.total_spend)
                for p in report.top_products
            ],
        )

        return bytes(pdf.output())
    except Exception as exc:
        raise ReportRenderingError(f"Error generant PDF: {exc}") from exc


def _fmt_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)
