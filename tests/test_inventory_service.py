import threading
import time
import unittest
from unittest.mock import patch

from support import ADMIN, MANAGER, add_product, make_services

from stockledger.core.exceptions import NotFoundError, PersistenceError, ValidationError


class InventoryServiceTest(unittest.TestCase):
    def setUp(self):
        self.services = make_services()
        self.addCleanup(self.services.close)
        self.inventory = self.services.inventory
        self.products = self.services.products
        self.agua = add_product(self.services, "Agua Mineral", 5, unit="botellas")

    def test_create_product_seeds_history(self):
        product = self.products.get(self.agua)
        self.assertEqual(product.quantity, 5)
        self.assertTrue(product.is_active)
        self.assertEqual(len(product.history), 1)

        seed = product.history[0]
        self.assertEqual(seed.type, "restock")
        self.assertEqual((seed.previous, seed.new, seed.amount), (0, 5, 5))
        self.assertTrue(seed.session_id.startswith("initial_"))
        self.assertEqual(seed.user, "Admin")

    def test_create_product_requires_name_and_unit(self):
        with self.assertRaises(ValidationError):
            self.inventory.create_product({"name": "Sin unidad"}, 1, ADMIN)
        with self.assertRaises(ValidationError):
            self.inventory.create_product({"name": " ", "unit": "pz"}, 1, ADMIN)
        with self.assertRaises(ValidationError):
            self.inventory.create_product({"name": "Vasos", "unit": "pz", "quantity": 3}, 1, ADMIN)
        with self.assertRaises(ValidationError):
            self.inventory.create_product({"name": "Vasos", "unit": "pz"}, "-2", ADMIN)

    def test_usage_clamps_to_zero(self):
        product = self.inventory.apply_delta(self.agua, -8, MANAGER)

        self.assertEqual(product.quantity, 0)
        entry = self.products.get(self.agua).history[0]
        self.assertEqual(entry.type, "usage")
        self.assertEqual((entry.amount, entry.previous, entry.new), (-8, 5, 0))
        self.assertEqual(entry.user, "Encargada")
        self.assertEqual(self.products.get(self.agua).quantity, 0)

    def test_restock_entry(self):
        self.inventory.apply_delta(self.agua, "2,5", MANAGER, session_id="job_1")
        product = self.products.get(self.agua)
        self.assertEqual(product.quantity, 7.5)
        self.assertEqual(product.history[0].type, "restock")
        self.assertEqual(product.history[0].session_id, "job_1")

    def test_restock_rejects_non_positive_amounts(self):
        for amount in ("0", "-1", "", "abc"):
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationError):
                    self.inventory.restock(self.agua, amount, MANAGER)
        self.assertEqual(self.products.get(self.agua).quantity, 5)

    def test_zero_delta_logs_usage_without_changing_quantity(self):
        product = self.inventory.apply_delta(self.agua, 0, MANAGER)

        self.assertEqual(product.quantity, 5)
        entry = self.products.get(self.agua).history[0]
        self.assertEqual(entry.type, "usage")
        self.assertEqual((entry.amount, entry.previous, entry.new), (0, 5, 5))
        self.assertEqual(len(self.products.get(self.agua).history), 2)

    def test_concurrent_restocks_keep_every_entry(self):
        documents = self.services.documents
        real_update = documents.update_document

        def slow_update(*args, **kwargs):
            time.sleep(0.05)
            return real_update(*args, **kwargs)

        errors = []

        def restock():
            try:
                self.inventory.restock(self.agua, 1, MANAGER)
            except Exception as exc:
                errors.append(exc)

        with patch.object(documents, "update_document", side_effect=slow_update):
            threads = [threading.Thread(target=restock) for _ in range(2)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=5)

        self.assertEqual(errors, [])
        product = self.products.get(self.agua)
        self.assertEqual(product.quantity, 7)
        self.assertEqual(len(product.history), 3)
        self.assertEqual([entry.new for entry in product.history], [7, 6, 5])

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.inventory.apply_delta("missing", 1)
        with self.assertRaises(NotFoundError):
            self.inventory.set_absolute("missing", 1)

    def test_anonymous_user_name(self):
        self.inventory.apply_delta(self.agua, 1)
        self.assertEqual(self.products.get(self.agua).history[0].user, "Desconocido")

    def test_history_is_capped(self):
        for _ in range(29):
            self.inventory.apply_delta(self.agua, 1)
        history = self.products.get(self.agua).history
        self.assertEqual(len(history), 30)
        self.assertTrue(history[-1].session_id.startswith("initial_"))

        self.inventory.apply_delta(self.agua, -1, session_id="job_last")
        history = self.products.get(self.agua).history
        self.assertEqual(len(history), 30)
        self.assertEqual(history[0].session_id, "job_last")
        self.assertFalse(any((entry.session_id or "").startswith("initial_") for entry in history))

    def test_set_absolute(self):
        product = self.inventory.set_absolute(self.agua, "7,5", ADMIN)
        self.assertEqual(product.quantity, 7.5)
        entry = self.products.get(self.agua).history[0]
        self.assertEqual(entry.type, "edit")
        self.assertEqual((entry.previous, entry.new), (5, 7.5))
        self.assertIsNone(entry.amount)

    def test_set_absolute_rejects_bad_input(self):
        for raw in ("abc", "-1", "", None):
            with self.subTest(raw=raw):
                with self.assertRaises(ValidationError):
                    self.inventory.set_absolute(self.agua, raw, ADMIN)
        product = self.products.get(self.agua)
        self.assertEqual(product.quantity, 5)
        self.assertEqual(len(product.history), 1)

    def test_edit_details_without_changes_adds_no_entry(self):
        before = self.products.get(self.agua)
        self.inventory.edit_details(self.agua, {"name": "Agua Mineral"}, ADMIN)
        after = self.products.get(self.agua)
        self.assertEqual(after.history, before.history)

    def test_edit_details_records_changed_fields(self):
        self.inventory.edit_details(
            self.agua, {"name": "Agua Mineral", "description": "Botella 1L", "unit": "litros"}, ADMIN
        )
        product = self.products.get(self.agua)
        self.assertEqual(product.description, "Botella 1L")
        self.assertEqual(product.unit, "litros")
        self.assertEqual(product.history[0].type, "details_edit")
        self.assertEqual(product.history[0].changes, ["description", "unit"])

    def test_edit_details_allow_list(self):
        for updates in ({"quantity": 100}, {"history": []}, {"isActive": False}, {"name": ""}, ["name"]):
            with self.subTest(updates=updates):
                with self.assertRaises(ValidationError):
                    self.inventory.edit_details(self.agua, updates, ADMIN)
        self.assertEqual(self.products.get(self.agua).quantity, 5)

    def test_deactivate_and_reactivate(self):
        self.inventory.deactivate(self.agua, ADMIN)
        product = self.products.get(self.agua)
        self.assertFalse(product.is_active)
        self.assertEqual(product.history[0].changes, ["Producto desactivado"])
        self.assertEqual(self.products.active_products(), [])
        self.assertEqual([p.id for p in self.products.inactive_products()], [self.agua])
        self.assertIsNotNone(self.services.documents.get("products", self.agua))

        self.inventory.reactivate(self.agua, ADMIN)
        product = self.products.get(self.agua)
        self.assertTrue(product.is_active)
        self.assertEqual(product.history[0].changes, ["Producto restaurado"])
        self.assertEqual(len(product.history), 3)

    def test_purge(self):
        self.inventory.purge(self.agua)
        self.assertIsNone(self.services.documents.get("products", self.agua))
        self.assertIsNone(self.products.find(self.agua))
        with self.assertRaises(NotFoundError):
            self.inventory.purge(self.agua)

    def test_failed_write_leaves_state_untouched(self):
        with patch.object(self.services.documents, "update_document", side_effect=PersistenceError("offline")):
            with self.assertRaises(PersistenceError):
                self.inventory.apply_delta(self.agua, -2, MANAGER)
        product = self.products.get(self.agua)
        self.assertEqual(product.quantity, 5)
        self.assertEqual(len(product.history), 1)

    def test_product_deleted_elsewhere(self):
        self.services.documents.delete_document("products", self.agua)
        with self.assertRaises(NotFoundError):
            self.inventory.apply_delta(self.agua, 1)


if __name__ == "__main__":
    unittest.main()
