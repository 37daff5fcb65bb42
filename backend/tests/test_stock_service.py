"""
Stock ledger tests: manual adjustments with audit log, unlimited toggle,
and conservation across order consumption.
"""

import pytest

from tablepos.extensions import db
from tablepos.models import Product, StockLogEntry
from tablepos.services import order_service, stock_service
from tablepos.services.errors import InvalidQuantity, ProductNotFound


def _stock(product_id):
    product = db.session.get(Product, product_id)
    db.session.refresh(product)
    return product.stock


def test_update_stock_applies_change_and_logs(make_product):
    product = make_product(stock=10)

    entry = stock_service.update_stock(product.id, 5, "Delivery")

    assert _stock(product.id) == 15
    assert entry.change_amount == 5
    assert entry.new_stock == 15
    assert entry.reason == "Delivery"
    assert entry.product_name == product.name
    assert db.session.query(StockLogEntry).count() == 1


def test_update_stock_default_reason(make_product):
    product = make_product()

    entry = stock_service.update_stock(product.id, -2, "   ")

    assert entry.reason == "Manual adjustment"


@pytest.mark.parametrize("change", [0, True, 1.0, "3"])
def test_update_stock_rejects_bad_change(make_product, change):
    product = make_product(stock=4)

    with pytest.raises(InvalidQuantity):
        stock_service.update_stock(product.id, change)

    assert _stock(product.id) == 4
    assert db.session.query(StockLogEntry).count() == 0


def test_negative_adjustment_allowed_by_default(make_product):
    product = make_product(stock=1)

    entry = stock_service.update_stock(product.id, -3, "Recount")

    assert entry.new_stock == -2
    assert _stock(product.id) == -2


def test_negative_adjustment_can_be_disabled(app, make_product, monkeypatch):
    monkeypatch.setitem(app.config, "ALLOW_NEGATIVE_STOCK_ADJUSTMENT", False)
    product = make_product(stock=1)

    with pytest.raises(InvalidQuantity):
        stock_service.update_stock(product.id, -3)

    assert _stock(product.id) == 1
    assert db.session.query(StockLogEntry).count() == 0

    stock_service.update_stock(product.id, -1)
    assert _stock(product.id) == 0


def test_update_stock_unknown_product(db_session):
    with pytest.raises(ProductNotFound):
        stock_service.update_stock(999, 1)


def test_toggle_unlimited_keeps_counter(make_product):
    product = make_product(stock=7)

    toggled = stock_service.toggle_unlimited(product.id)
    assert toggled.is_unlimited is True
    assert toggled.stock == 7

    back = stock_service.toggle_unlimited(product.id)
    assert back.is_unlimited is False
    assert back.stock == 7


def test_stock_log_newest_first_and_filtered(make_product):
    kola = make_product(name="Kola")
    ayran = make_product(name="Ayran")

    first = stock_service.update_stock(kola.id, 1, "a")
    stock_service.update_stock(ayran.id, 2, "b")
    last = stock_service.update_stock(kola.id, 3, "c")

    log = stock_service.list_stock_log(product_id=kola.id)
    assert [e.id for e in log] == [last.id, first.id]
    assert len(stock_service.list_stock_log()) == 3
    assert len(stock_service.list_stock_log(limit=1)) == 1


def test_stock_conservation_across_sales_and_adjustments(make_table, make_product):
    table = make_table()
    product = make_product(stock=10)
    order = order_service.create_order(table.id)

    order_service.add_item_to_order(order.id, product.id, quantity=3)
    stock_service.update_stock(product.id, 5, "Delivery")
    order_service.add_item_to_order(order.id, product.id, quantity=2, item_type="complimentary")
    stock_service.update_stock(product.id, -1, "Broken")

    consumed = 3 + 2
    adjustments = sum(e.change_amount for e in stock_service.list_stock_log(product_id=product.id))
    assert _stock(product.id) == 10 - consumed + adjustments == 9


def test_sales_do_not_write_stock_log(make_table, make_product):
    table = make_table()
    product = make_product(stock=3)

    order_service.start_order_with_item(table.id, product.id, quantity=2)

    assert stock_service.list_stock_log() == []


def test_set_stock_logs_the_difference(make_product):
    product = make_product(stock=10)

    entry = stock_service.set_stock(product.id, 4, "Recount")

    assert entry.change_amount == -6
    assert entry.new_stock == 4
    assert entry.reason == "Recount"
    assert _stock(product.id) == 4


def test_set_stock_to_current_value_writes_nothing(make_product):
    product = make_product(stock=7)

    assert stock_service.set_stock(product.id, 7) is None

    assert _stock(product.id) == 7
    assert stock_service.list_stock_log() == []


def test_set_stock_counts_from_sales_since_last_read(make_table, make_product):
    table = make_table()
    product = make_product(stock=10)
    seen = product.stock

    # A sale lands between reading the shelf count and submitting the recount
    order_service.start_order_with_item(table.id, product.id, quantity=3)
    entry = stock_service.set_stock(product.id, seen, "Recount")

    assert entry.change_amount == 3
    assert _stock(product.id) == 10
    adjustments = sum(e.change_amount for e in stock_service.list_stock_log(product_id=product.id))
    assert _stock(product.id) == 10 - 3 + adjustments


def test_set_stock_validation(app, make_product, monkeypatch):
    product = make_product(stock=2)

    with pytest.raises(InvalidQuantity):
        stock_service.set_stock(product.id, 1.5)
    with pytest.raises(ProductNotFound):
        stock_service.set_stock(999, 1)

    monkeypatch.setitem(app.config, "ALLOW_NEGATIVE_STOCK_ADJUSTMENT", False)
    with pytest.raises(InvalidQuantity):
        stock_service.set_stock(product.id, -1)
    assert _stock(product.id) == 2
