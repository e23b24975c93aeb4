from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from backend.app.db.models.core_types import OrderStatus
from backend.services.ledger import LineItem, OrderRecord
from backend.services.reporting import (
    ACTIVE_ORDER_STATUSES,
    DashboardStats,
    aggregate_dashboard,
    build_period_report,
    compute_global_report,
    current_month_bounds,
    filter_active_orders,
    round_money,
)

START = datetime(2025, 11, 1)
END = datetime(2025, 11, 30, 23, 59, 59)


def _order(
    order_id: int,
    supplier_id: int,
    items=(),
    *,
    status=OrderStatus.confirmed,
    total="0",
    supplier_name: str | None = None,
) -> OrderRecord:
    return OrderRecord(
        id=order_id,
        company_id=1,
        supplier_id=supplier_id,
        supplier_name=supplier_name or f"S{supplier_id}",
        status=status,
        total_amount=Decimal(total),
        created_at=datetime(2025, 11, 15),
        items=tuple(items),
    )


def _item(product_id: int, qty: str, price: str, name: str | None = None) -> LineItem:
    return LineItem(
        product_id=product_id,
        product_name=name or f"P{product_id}",
        quantity=Decimal(qty),
        unit_price=Decimal(price),
    )


# ---------- Filtre de statut ----------
def test_active_statuses_are_the_four_economic_states():
    assert ACTIVE_ORDER_STATUSES == {
        OrderStatus.pending,
        OrderStatus.sent,
        OrderStatus.confirmed,
        OrderStatus.completed,
    }


def test_filter_active_orders_keeps_order_and_drops_rejected_cancelled():
    orders = [_order(i, 1, status=s) for i, s in enumerate(OrderStatus)]
    active = filter_active_orders(orders)
    assert [o.status for o in active] == [
        OrderStatus.pending,
        OrderStatus.sent,
        OrderStatus.confirmed,
        OrderStatus.completed,
    ]


def test_rejected_order_contributes_nothing():
    rejected = _order(1, 1, [_item(1, "5", "100.00")], status=OrderStatus.rejected, total="500.00")
    report = build_period_report([rejected], START, END)
    assert report.total_orders == 0
    assert report.total_spend == 0
    assert report.supplier_spend == ()
    assert report.top_products == ()

    stats = aggregate_dashboard([rejected])
    assert stats.total_orders == 0
    assert stats.total_spend == 0


# ---------- Dashboard ----------
def test_dashboard_without_orders_is_all_zero():
    assert aggregate_dashboard([]) == DashboardStats(total_orders=0, total_spend=Decimal("0"), pending_orders=0)


def test_dashboard_sums_stored_totals_and_counts_pending():
    orders = [
        _order(1, 1, status=OrderStatus.pending, total="10.50"),
        _order(2, 1, status=OrderStatus.pending, total="4.25"),
        _order(3, 2, status=OrderStatus.completed, total="100.00"),
        _order(4, 2, status=OrderStatus.cancelled, total="999.99"),
    ]
    stats = aggregate_dashboard(orders)
    assert stats.total_orders == 3
    assert stats.total_spend == Decimal("114.75")
    assert stats.pending_orders == 2


@pytest.mark.parametrize(
    "now, start, end",
    [
        (
            datetime(2025, 11, 18, 10, 30),
            datetime(2025, 11, 1, 0, 0),
            datetime(2025, 11, 30, 23, 59, 59, 999999),
        ),
        (
            datetime(2024, 2, 29, 23, 59),
            datetime(2024, 2, 1, 0, 0),
            datetime(2024, 2, 29, 23, 59, 59, 999999),
        ),
        (
            datetime(2025, 12, 1, 0, 0),
            datetime(2025, 12, 1, 0, 0),
            datetime(2025, 12, 31, 23, 59, 59, 999999),
        ),
    ],
)
def test_current_month_bounds(now, start, end):
    assert current_month_bounds(now) == (start, end)


# ---------- Report global ----------
def test_two_supplier_scenario():
    orders = [
        _order(1, 1, [_item(1, "2", "10.00")]),
        _order(2, 2, [_item(1, "1", "10.00")]),
    ]
    report = build_period_report(orders, START, END)

    assert report.total_orders == 2
    assert report.total_spend == Decimal("30.00")
    assert report.average_spend == Decimal("15.00")

    by_supplier = {s.supplier_name: s for s in report.supplier_spend}
    assert by_supplier["S1"].order_count == 1
    assert by_supplier["S1"].total_spend == Decimal("20.00")
    assert by_supplier["S1"].percentage == Decimal("66.67")
    assert by_supplier["S2"].order_count == 1
    assert by_supplier["S2"].total_spend == Decimal("10.00")
    assert by_supplier["S2"].percentage == Decimal("33.33")

    assert len(report.top_products) == 1
    top = report.top_products[0]
    assert top.product_name == "P1"
    assert top.total_quantity == Decimal("3")
    assert top.total_spend == Decimal("30.00")


def test_empty_period_report():
    report = build_period_report([], START, END)
    assert report.total_orders == 0
    assert report.total_spend == 0
    assert report.average_spend == 0
    assert report.supplier_spend == ()
    assert report.top_products == ()
    assert (report.period_start, report.period_end) == (START, END)


def test_zero_spend_gives_zero_percentages():
    orders = [
        _order(1, 1, [_item(1, "3", "0.00")]),
        _order(2, 2, []),
    ]
    report = build_period_report(orders, START, END)
    assert report.total_orders == 2
    assert report.total_spend == 0
    assert report.average_spend == 0
    assert len(report.supplier_spend) == 2
    assert all(s.percentage == 0 for s in report.supplier_spend)


def test_spend_is_recomputed_from_line_items_not_stored_total():
    orders = [_order(1, 1, [_item(1, "2", "7.50")], total="1.00")]
    report = build_period_report(orders, START, END)
    assert report.total_spend == Decimal("15.00")
    assert report.supplier_spend[0].total_spend == Decimal("15.00")


def test_rounding_is_half_up():
    assert round_money(Decimal("0.005")) == Decimal("0.01")
    assert round_money(Decimal("2.675")) == Decimal("2.68")

    orders = [_order(1, 1, [_item(1, "0.5", "0.01")])]
    report = build_period_report(orders, START, END)
    # total non arrondi, valeurs exposées arrondies
    assert report.total_spend == Decimal("0.005")
    assert report.supplier_spend[0].total_spend == Decimal("0.01")
    assert report.top_products[0].total_spend == Decimal("0.01")
    assert report.average_spend == Decimal("0.01")


def test_average_is_rounded_to_cents():
    orders = [
        _order(1, 1, [_item(1, "1", "10.00")]),
        _order(2, 1, [_item(1, "1", "10.00")]),
        _order(3, 1, [_item(1, "1", "0.01")]),
    ]
    report = build_period_report(orders, START, END)
    assert report.total_spend == Decimal("20.01")
    assert report.average_spend == Decimal("6.67")


def test_supplier_spend_sums_to_total_within_rounding():
    orders = [
        _order(1, 1, [_item(1, "1.33", "3.33"), _item(2, "0.5", "9.99")]),
        _order(2, 2, [_item(3, "7", "1.11")]),
        _order(3, 3, [_item(1, "2.25", "4.45")]),
        _order(4, 1, [_item(4, "0.75", "0.99")]),
    ]
    report = build_period_report(orders, START, END)
    supplier_sum = sum(s.total_spend for s in report.supplier_spend)
    tolerance = Decimal("0.01") * len(report.supplier_spend)
    assert abs(supplier_sum - report.total_spend) <= tolerance
    assert sum(s.order_count for s in report.supplier_spend) == report.total_orders


def test_supplier_groups_by_id_not_by_name():
    orders = [
        _order(1, 1, [_item(1, "1", "5.00")], supplier_name="Homonim"),
        _order(2, 2, [_item(1, "1", "5.00")], supplier_name="Homonim"),
        _order(3, 1, [_item(1, "1", "5.00")], supplier_name="Homonim"),
    ]
    report = build_period_report(orders, START, END)
    assert [(s.supplier_id, s.order_count) for s in report.supplier_spend] == [(1, 2), (2, 1)]


def test_supplier_list_sorted_by_spend_then_name():
    orders = [
        _order(1, 3, [_item(1, "1", "5.00")], supplier_name="Charlie"),
        _order(2, 1, [_item(1, "1", "50.00")], supplier_name="Alpha"),
        _order(3, 2, [_item(1, "1", "5.00")], supplier_name="Bravo"),
    ]
    report = build_period_report(orders, START, END)
    assert [s.supplier_name for s in report.supplier_spend] == ["Alpha", "Bravo", "Charlie"]


def test_top_products_limited_to_ten_sorted_by_quantity():
    orders = [
        _order(i, 1, [_item(i, str(i), "1.00")])
        for i in range(1, 16)
    ]
    report = build_period_report(orders, START, END)
    quantities = [p.total_quantity for p in report.top_products]
    assert len(report.top_products) == 10
    assert quantities == sorted(quantities, reverse=True)
    assert [p.product_id for p in report.top_products] == list(range(15, 5, -1))


def test_top_products_tie_break_on_product_id():
    orders = [
        _order(1, 1, [_item(9, "4", "1.00"), _item(3, "4", "2.00")]),
        _order(2, 2, [_item(5, "4", "3.00"), _item(7, "6", "1.00")]),
    ]
    report = build_period_report(orders, START, END)
    assert [p.product_id for p in report.top_products] == [7, 3, 5, 9]


def test_top_products_aggregate_across_orders_and_suppliers():
    orders = [
        _order(1, 1, [_item(1, "1.5", "2.00"), _item(2, "1", "100.00")]),
        _order(2, 2, [_item(1, "2.5", "3.00")]),
    ]
    report = build_period_report(orders, START, END)
    first = report.top_products[0]
    assert first.product_id == 1
    assert first.total_quantity == Decimal("4.0")
    assert first.total_spend == Decimal("10.50")


def test_report_is_idempotent():
    orders = [
        _order(1, 2, [_item(1, "2", "10.00"), _item(2, "3", "1.10")]),
        _order(2, 1, [_item(2, "1", "1.10")]),
        _order(3, 1, [_item(3, "3", "0.99")], status=OrderStatus.sent),
    ]
    assert build_period_report(orders, START, END) == build_period_report(list(orders), START, END)


def test_inverted_period_returns_zero_report_without_fetching():
    with patch("backend.services.reporting.fetch_orders_for_period") as fetch:
        report = compute_global_report(None, 1, END, START)
    fetch.assert_not_called()
    assert report.total_orders == 0
    assert report.total_spend == 0
    assert report.average_spend == 0
    assert report.period_start == END
