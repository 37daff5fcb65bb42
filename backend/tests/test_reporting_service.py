import unittest
from datetime import datetime

from tablepos import create_app
from tablepos.extensions import db
from tablepos.models import DiningTable, Order, OrderItem, Product, StockLogEntry
from tablepos.services import catalog_service, order_service, reporting_service, table_service
from tablepos.services.reporting_service import ReportError, resolve_period


class ResolvePeriodTests(unittest.TestCase):
    NOW = datetime(2026, 3, 15, 14, 30)

    def test_all_is_unbounded(self):
        self.assertEqual(resolve_period("all", now=self.NOW), (None, None))

    def test_named_periods_start_at_midnight(self):
        self.assertEqual(resolve_period("today", now=self.NOW), (datetime(2026, 3, 15), None))
        self.assertEqual(resolve_period("week", now=self.NOW), (datetime(2026, 3, 8), None))
        self.assertEqual(resolve_period("month", now=self.NOW), (datetime(2026, 2, 15), None))

    def test_month_clamps_to_shorter_month(self):
        start, _ = resolve_period("month", now=datetime(2026, 3, 31, 9, 0))
        self.assertEqual(start, datetime(2026, 2, 28))

        start, _ = resolve_period("month", now=datetime(2026, 1, 10))
        self.assertEqual(start, datetime(2025, 12, 10))

    def test_custom_range_is_inclusive_of_end_day(self):
        self.assertEqual(
            resolve_period("custom", "2026-03-01", "2026-03-03"),
            (datetime(2026, 3, 1), datetime(2026, 3, 4)),
        )
        self.assertEqual(
            resolve_period("custom", "2026-03-01T18:45:00Z"),
            (datetime(2026, 3, 1), datetime(2026, 3, 2)),
        )

    def test_invalid_periods(self):
        with self.assertRaises(ReportError):
            resolve_period("year")
        with self.assertRaises(ReportError):
            resolve_period("custom")
        with self.assertRaises(ReportError):
            resolve_period("custom", "2026-03-05", "2026-03-01")
        with self.assertRaises(ReportError):
            resolve_period("custom", "yesterday")


class ReportingServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "LEDGER_RETRY_BACKOFF": 0,
            "LOG_LEVEL": "WARNING",
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(OrderItem).delete()
        db.session.query(StockLogEntry).delete()
        db.session.query(Order).delete()
        db.session.query(DiningTable).delete()
        db.session.query(Product).delete()
        db.session.commit()

        self.kola = catalog_service.create_product(
            patch={"name": "Kola", "price": 40, "stock": 50, "category": "Drinks"}
        )
        self.kebap = catalog_service.create_product(
            patch={"name": "Kebap", "price": 350, "is_unlimited": True, "category": "Mains"}
        )
        self.t1 = table_service.create_table(name="A 1", section="Alt Kat")
        self.t2 = table_service.create_table(name="A 2", section="Alt Kat")
        self.t3 = table_service.create_table(name="T 1", section="Teras")

    def _seed_orders(self):
        # Paid order: 2 Kola + 1 complimentary Kola
        self.paid_order = order_service.create_order(self.t1.id)
        order_service.add_item_to_order(self.paid_order.id, self.kola.id, quantity=2)
        order_service.add_item_to_order(self.paid_order.id, self.kola.id, item_type="complimentary")
        order_service.close_order(self.paid_order.id, status="paid")

        # Unpaid order: 2 Kebap, one of them settled item-by-item
        self.unpaid_order = order_service.create_order(self.t2.id)
        kebap = order_service.add_item_to_order(self.unpaid_order.id, self.kebap.id, quantity=2)
        order_service.mark_item_paid(kebap.id, 1)
        order_service.close_order(self.unpaid_order.id, status="no_payment")

        # Still open: 1 Kola
        self.open_order = order_service.create_order(self.t3.id)
        order_service.add_item_to_order(self.open_order.id, self.kola.id)

    def test_product_sales_counts_paid_and_complimentary_units(self):
        self._seed_orders()

        stats = reporting_service.product_sales()

        self.assertEqual([s.product_name for s in stats], ["Kebap", "Kola"])
        kebap, kola = stats
        self.assertEqual((kebap.paid, kebap.complimentary, kebap.revenue), (2, 0, 700))
        self.assertEqual((kola.paid, kola.complimentary, kola.revenue), (3, 1, 120))

    def test_sales_summary_revenue_from_paid_orders_only(self):
        self._seed_orders()

        summary = reporting_service.sales_summary()

        self.assertEqual(summary.total_revenue, 80)
        self.assertEqual(summary.total_orders, 1)
        self.assertEqual(summary.average_order_value, 80.0)
        self.assertEqual(summary.unpaid_orders, 1)
        self.assertEqual(summary.unpaid_amount, 700)

    def test_empty_summary(self):
        summary = reporting_service.sales_summary()

        self.assertEqual(summary.to_dict(), {
            "total_revenue": 0,
            "total_orders": 0,
            "average_order_value": 0.0,
            "unpaid_orders": 0,
            "unpaid_amount": 0,
        })

    def test_order_history_newest_first_with_payment_progress(self):
        self._seed_orders()

        history = reporting_service.order_history()

        self.assertEqual(
            [h.order_id for h in history],
            [self.unpaid_order.id, self.paid_order.id],
        )
        unpaid, paid = history
        self.assertEqual(unpaid.table_name, "A 2")
        self.assertEqual(unpaid.paid_items_amount, 350)
        self.assertEqual(unpaid.remaining_amount, 350)
        self.assertTrue(unpaid.is_partially_paid)
        self.assertFalse(paid.is_partially_paid)
        self.assertEqual(paid.remaining_amount, 80)

        only_unpaid = reporting_service.order_history(status="no_payment")
        self.assertEqual([h.order_id for h in only_unpaid], [self.unpaid_order.id])

        with self.assertRaises(ReportError):
            reporting_service.order_history(status="active")

    def test_window_excludes_older_orders(self):
        self._seed_orders()

        old = db.session.get(Order, self.paid_order.id)
        old.created_at = datetime(2020, 1, 1, 12, 0)
        db.session.commit()

        start, end = resolve_period("today")
        summary = reporting_service.sales_summary(start, end)
        self.assertEqual(summary.total_orders, 0)
        self.assertEqual(summary.unpaid_orders, 1)

        start, end = resolve_period("custom", "2020-01-01")
        history = reporting_service.order_history(start, end)
        self.assertEqual([h.order_id for h in history], [self.paid_order.id])
        self.assertTrue(history[0].to_dict()["created_at"].startswith("2020-01-01T12:00:00"))


if __name__ == "__main__":
    unittest.main()
