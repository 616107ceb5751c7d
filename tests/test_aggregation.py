from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from conftest import KIYMALI, SU_BOREGI, TODAY, make_order

from boreksan_sdk.aggregation import (
    aggregate_day_orders,
    build_daily_matrix,
    build_monthly_report,
    business_day,
    effective_quantity,
    group_daily_history,
    tray_count,
)
from boreksan_sdk.models_orders import OrderStatus

TZ = ZoneInfo("Europe/Istanbul")


def _at(day: date, hour: int = 9) -> datetime:
    return datetime.combine(day, time(hour, 0))


def test_daily_matrix_counts_ordered_product_and_zero_fills_the_rest(catalog) -> None:
    orders = [make_order(1, "A", _at(TODAY), [(SU_BOREGI, 2, "100")])]

    matrix = build_daily_matrix(orders, catalog, TODAY, TZ)

    row = matrix.row("A")
    assert row is not None
    assert row.quantities == {SU_BOREGI: 2, KIYMALI: 0}
    assert matrix.product_names == (SU_BOREGI, KIYMALI)


def test_daily_matrix_keeps_shops_that_did_not_order_today(catalog) -> None:
    orders = [
        make_order(1, "Bakkal Ali", _at(date(2025, 3, 1)), [(KIYMALI, 1, "150")]),
        make_order(2, "A", _at(TODAY), [(SU_BOREGI, 2, "100")]),
    ]

    matrix = build_daily_matrix(orders, catalog, TODAY, TZ)

    assert matrix.shops == ["A", "Bakkal Ali"]
    quiet = matrix.row("Bakkal Ali")
    assert quiet.quantities == {SU_BOREGI: 0, KIYMALI: 0}
    assert quiet.total_amount == Decimal("0")
    assert quiet.order_count == 0


def test_daily_matrix_excludes_admin_and_cancelled(catalog) -> None:
    orders = [
        make_order(1, "admin", _at(TODAY), [(SU_BOREGI, 4, "100")]),
        make_order(2, "A", _at(TODAY), [(SU_BOREGI, 3, "100")], status="CANCELLED"),
        make_order(3, "A", _at(TODAY, 11), [(SU_BOREGI, 1, "100")]),
    ]

    matrix = build_daily_matrix(orders, catalog, TODAY, TZ)

    assert matrix.shops == ["A"]
    assert matrix.row("A").quantity(SU_BOREGI) == 1
    assert matrix.row("A").total_amount == Decimal("100")


def test_daily_matrix_sums_multiple_orders_of_one_shop(catalog) -> None:
    orders = [
        make_order(1, "A", _at(TODAY, 8), [(SU_BOREGI, 2, "100")]),
        make_order(2, "A", _at(TODAY, 10), [(SU_BOREGI, 1, "100"), (KIYMALI, 2, "150")]),
    ]

    row = build_daily_matrix(orders, catalog, TODAY, TZ).row("A")

    assert row.quantities == {SU_BOREGI: 3, KIYMALI: 2}
    assert row.total_amount == Decimal("600")
    assert row.order_count == 2


def test_unmatched_items_count_in_totals_but_not_in_columns(catalog) -> None:
    orders = [
        make_order(1, "A", _at(TODAY), [(SU_BOREGI, 1, "100"), ("Eski Poğaça", 2, "40")]),
    ]

    row = build_daily_matrix(orders, catalog, TODAY, TZ).row("A")

    assert row.quantities == {SU_BOREGI: 1, KIYMALI: 0}
    assert row.unmatched_quantity == 2
    assert row.unmatched_amount == Decimal("80")
    assert row.total_amount == Decimal("180")
    assert row.matched_amount == Decimal("100")


def test_shop_identity_falls_back_to_customer_name(catalog) -> None:
    orders = [make_order(1, "", _at(TODAY), [(SU_BOREGI, 1, "100")], customer="Ayşe Hanım")]

    matrix = build_daily_matrix(orders, catalog, TODAY, TZ)

    assert matrix.shops == ["Ayşe Hanım"]


def test_aware_timestamps_use_the_business_timezone() -> None:
    # 22:30 UTC is already the next day in Istanbul.
    moment = datetime(2025, 3, 11, 22, 30, tzinfo=timezone.utc)
    assert business_day(moment, TZ) == date(2025, 3, 12)
    assert business_day(datetime(2025, 3, 11, 22, 30), TZ) == date(2025, 3, 11)


def test_effective_quantity_ignores_other_days_and_cancelled() -> None:
    orders = [
        make_order(1, "A", _at(TODAY), [(SU_BOREGI, 2, "100")]),
        make_order(2, "A", _at(date(2025, 3, 11)), [(SU_BOREGI, 7, "100")]),
        make_order(3, "A", _at(TODAY, 12), [(SU_BOREGI, 5, "100")], status="CANCELLED"),
        make_order(4, "B", _at(TODAY), [(SU_BOREGI, 9, "100")]),
    ]

    assert effective_quantity(orders, "A", SU_BOREGI, TODAY, TZ) == 2


def test_monthly_report_leaves_future_days_blank(catalog) -> None:
    orders = [
        make_order(1, "A", _at(date(2025, 3, 3)), [(SU_BOREGI, 2, "100")]),
        make_order(2, "A", _at(date(2025, 3, 20)), [(KIYMALI, 4, "150")]),
    ]

    report = build_monthly_report(orders, catalog, "A", 2025, 3, today=TODAY, tz=TZ)

    assert len(report.rows) == 31
    quiet_past = report.row(date(2025, 3, 4))
    assert quiet_past.cell(SU_BOREGI) == 0
    assert quiet_past.total_amount == Decimal("0")
    for row in report.rows:
        if row.business_date > TODAY:
            assert row.is_future
            assert row.quantities is None
            assert row.total_amount is None
            assert row.cell(KIYMALI) is None
    assert report.row(TODAY).is_future is False
    assert report.totals.quantities == {SU_BOREGI: 2, KIYMALI: 0}
    assert report.totals.total_amount == Decimal("200")


def test_monthly_totals_reconcile_with_rows_and_unmatched_bucket(catalog) -> None:
    orders = [
        make_order(1, "A", _at(date(2025, 3, 1)), [(SU_BOREGI, 2, "100"), (KIYMALI, 1, "150")]),
        make_order(2, "A", _at(date(2025, 3, 5)), [(SU_BOREGI, 1, "100"), ("Eski Poğaça", 3, "40")]),
        make_order(3, "A", _at(date(2025, 3, 5), 14), [(KIYMALI, 2, "150")], status="CANCELLED"),
        make_order(4, "B", _at(date(2025, 3, 5)), [(KIYMALI, 6, "150")]),
        make_order(5, "A", _at(date(2025, 2, 28)), [(SU_BOREGI, 9, "100")]),
    ]

    report = build_monthly_report(orders, catalog, "A", 2025, 3, today=TODAY, tz=TZ)
    past_rows = [row for row in report.rows if not row.is_future]

    for name in report.product_names:
        assert report.totals.quantities[name] == sum(row.cell(name) for row in past_rows)
    assert report.totals.total_amount == sum(row.total_amount for row in past_rows)
    assert report.totals.unmatched_quantity == 3
    assert report.totals.unmatched_amount == Decimal("120")
    # Product columns exclude the unmatched line; the money total does not.
    assert report.totals.total_amount == Decimal("570")
    assert report.totals.quantities == {SU_BOREGI: 3, KIYMALI: 1}


def test_monthly_report_for_past_month_has_no_blank_days(catalog) -> None:
    report = build_monthly_report([], catalog, "A", 2025, 2, today=TODAY, tz=TZ)

    assert len(report.rows) == 28
    assert not any(row.is_future for row in report.rows)
    assert report.totals.total_amount == Decimal("0")


def test_aggregate_day_orders_merges_lines_and_uses_midday() -> None:
    orders = [
        make_order(1, "A", _at(TODAY, 8), [(SU_BOREGI, 2, "100")], status="DELIVERED"),
        make_order(2, "A", _at(TODAY, 10), [(SU_BOREGI, 1, "100"), (KIYMALI, 1, "150")], status="PREPARING"),
        make_order(3, "A", _at(TODAY, 11), [(KIYMALI, 5, "150")], status="CANCELLED"),
    ]

    composite = aggregate_day_orders(orders, "A", TODAY, TZ)

    assert composite is not None
    assert composite.status == OrderStatus.WAITING
    assert composite.created_at == datetime(2025, 3, 12, 12, 0, tzinfo=TZ)
    assert composite.source_order_ids == [1, 2]
    assert composite.total_price == Decimal("450")
    merged = {item.product_name: item for item in composite.items}
    assert merged[SU_BOREGI].quantity == 3
    assert merged[SU_BOREGI].unit_price == Decimal("100")
    assert merged[KIYMALI].quantity == 1
    assert tray_count(composite) == 4


def test_aggregate_day_orders_delivered_only_when_all_delivered() -> None:
    orders = [
        make_order(1, "A", _at(TODAY, 8), [(SU_BOREGI, 2, "100")], status="DELIVERED"),
        make_order(2, "A", _at(TODAY, 10), [(SU_BOREGI, 1, "110")], status="DELIVERED"),
    ]

    composite = aggregate_day_orders(orders, "A", TODAY, TZ)

    assert composite.status == OrderStatus.DELIVERED
    # Mixed prices collapse to the weighted average.
    assert composite.items[0].unit_price == Decimal("103.33")


def test_aggregate_day_orders_returns_none_when_everything_is_cancelled() -> None:
    orders = [make_order(1, "A", _at(TODAY), [(SU_BOREGI, 2, "100")], status="CANCELLED")]

    assert aggregate_day_orders(orders, "A", TODAY, TZ) is None


def test_group_daily_history_is_newest_first() -> None:
    orders = [
        make_order(1, "A", _at(date(2025, 3, 10)), [(SU_BOREGI, 1, "100")]),
        make_order(2, "B", _at(TODAY), [(SU_BOREGI, 1, "100")]),
        make_order(3, "A", _at(TODAY), [(KIYMALI, 1, "150")]),
        make_order(4, "A", _at(TODAY, 15), [(KIYMALI, 1, "150")]),
    ]

    history = group_daily_history(orders, TZ)

    assert [(entry.business_date, entry.shop_identity) for entry in history] == [
        (TODAY, "A"),
        (TODAY, "B"),
        (date(2025, 3, 10), "A"),
    ]
    assert history[0].source_order_ids == [3, 4]
