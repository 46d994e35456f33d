# Overview: Threaded checkout races against a file-backed SQLite database.

"""
Concurrency tests for stock deduction.

Each worker runs in its own app context (own session and connection), so
the database write lock and retries are what keep the counts right.
"""
import os
import tempfile
import threading
import unittest

from homestore import create_app
from homestore.extensions import db
from homestore.models import Order, PosTransaction, Product
from homestore.services import order_service, pos_service


class OversellConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "EMAIL_API_KEY": None,
            "EMAIL_SEND_ASYNC": False,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            product = Product(
                name="Linen Duvet",
                category="Bedding",
                price=100,
                colors=["White"],
                variants=[{"size": "Queen", "price": 100}],
                variant_stock={"Queen-White": 3},
            )
            db.session.add(product)
            db.session.commit()
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run(self, workers):
        results = []
        lock = threading.Lock()

        def wrap(fn):
            def worker():
                with self.app.app_context():
                    try:
                        fn()
                        with lock:
                            results.append("ok")
                    except Exception as exc:
                        with lock:
                            results.append(exc)
                    finally:
                        db.session.remove()
            return worker

        threads = [threading.Thread(target=wrap(fn)) for fn in workers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def _stock(self):
        with self.app.app_context():
            return db.session.get(Product, self.product_id).variant_stock["Queen-White"]

    def test_concurrent_orders_do_not_oversell(self):
        payload = {
            "customerName": "Racer",
            "customerEmail": "racer@example.com",
            "customerPhone": "7000000",
            "shippingAddress": "Male",
            "paymentMethod": "cod",
            "items": [{"productId": self.product_id, "name": "Duvet", "qty": 2, "size": "Queen", "color": "White"}],
        }
        results = self._run([lambda: order_service.create_order(payload) for _ in range(4)])

        placed = sum(1 for r in results if r == "ok")
        self.assertEqual(placed, 1)
        self.assertTrue(all(isinstance(r, order_service.OrderError) for r in results if r != "ok"))
        self.assertEqual(self._stock(), 1)

        with self.app.app_context():
            self.assertEqual(db.session.query(Order).count(), 1)

    def test_order_and_till_race_for_last_units(self):
        order = {
            "customerName": "Online",
            "customerEmail": "online@example.com",
            "customerPhone": "7000001",
            "shippingAddress": "Hulhumale",
            "paymentMethod": "bank",
            "items": [{"productId": self.product_id, "name": "Duvet", "qty": 3, "size": "Queen", "color": "White"}],
        }
        sale = {"items": [{"productId": self.product_id, "name": "Duvet", "qty": 3}], "total": 300}

        results = self._run([
            lambda: order_service.create_order(order),
            lambda: pos_service.create_transaction(sale),
        ])

        self.assertEqual(sum(1 for r in results if r == "ok"), 1)
        self.assertEqual(self._stock(), 0)

        with self.app.app_context():
            recorded = db.session.query(Order).count() + db.session.query(PosTransaction).count()
            self.assertEqual(recorded, 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
