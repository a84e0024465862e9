import unittest

from fastapi.testclient import TestClient
from support import make_services

from stockledger.main import create_app


class ApiTest(unittest.TestCase):
    def setUp(self):
        self.services = make_services(SEED_DEFAULT_PRODUCTS=True)
        self.addCleanup(self.services.close)
        self.client = TestClient(create_app(self.services.settings, self.services))
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def login(self, username, password=None):
        response = self.client.post("/auth/login", json={"username": username, "password": password or username})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def product_id(self, name):
        for product in self.client.get("/products").json():
            if product["name"] == name:
                return product["id"]
        raise AssertionError(name)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.json()["products"], 5)

    def test_login_flow(self):
        self.assertEqual(self.client.get("/products").status_code, 401)
        self.assertEqual(
            self.client.post("/auth/login", json={"username": "admin", "password": "bad"}).status_code, 401
        )

        user = self.login("admin")
        self.assertEqual(user["role"], "admin")
        self.assertNotIn("password", user)
        self.assertEqual(self.client.get("/auth/me").json()["username"], "admin")

        self.client.post("/auth/logout")
        self.assertIsNone(self.client.get("/auth/me").json())

    def test_manager_cannot_use_admin_endpoints(self):
        self.login("encargada")
        self.assertEqual(self.client.post("/products", json={"name": "Vasos", "unit": "pz", "quantity": 1}).status_code, 403)
        self.assertEqual(self.client.get("/backup/export").status_code, 403)
        self.assertEqual(self.client.post("/jobs/last/rollback").status_code, 403)

    def test_restock_and_adjust(self):
        self.login("encargada")
        agua = self.product_id("Agua Mineral")

        response = self.client.post("/products/{}/restock".format(agua), json={"amount": "6"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["quantity"], 30)
        self.assertEqual(response.json()["history"][0]["type"], "restock")

        self.assertEqual(self.client.post("/products/{}/restock".format(agua), json={"amount": "0"}).status_code, 400)
        response = self.client.post("/products/{}/adjust".format(agua), json={"amount": "12,5"})
        self.assertEqual(response.json()["quantity"], 12.5)
        self.assertEqual(self.client.post("/products/missing/adjust", json={"amount": 1}).status_code, 404)

        history = self.client.get("/products/{}/history".format(agua)).json()
        self.assertEqual([entry["type"] for entry in history], ["edit", "restock"])

    def test_work_session_and_rollback(self):
        self.login("encargada")
        shampoo = self.product_id("Shampoo")
        session_id = self.client.post("/work-sessions").json()["sessionId"]

        response = self.client.post(
            "/work-sessions/{}/usage".format(session_id),
            json={"productId": shampoo, "amount": "5", "restockAmount": "8"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual([item["action"] for item in response.json()], ["used", "restocked"])

        job = self.client.post("/work-sessions/{}/finish".format(session_id)).json()["job"]
        self.assertEqual(job["sessionId"], session_id)
        self.assertEqual(self.client.get("/jobs/last").json()["id"], job["id"])
        self.assertEqual(self.client.get("/products/{}".format(shampoo)).json()["quantity"], 8)

        self.client.post("/auth/logout")
        self.login("admin")
        result = self.client.post("/jobs/last/rollback").json()
        self.assertEqual(result["revertedProductIds"], [shampoo])
        self.assertEqual(self.client.get("/products/{}".format(shampoo)).json()["quantity"], 5)
        self.assertIsNone(self.client.get("/jobs/last").json())
        self.assertEqual(self.client.post("/jobs/last/rollback").status_code, 404)

    def test_cancel_work_session(self):
        self.login("encargada")
        agua = self.product_id("Agua Mineral")
        session_id = self.client.post("/work-sessions").json()["sessionId"]
        self.client.post("/work-sessions/{}/usage".format(session_id), json={"productId": agua, "amount": "2"})

        self.client.post("/auth/logout")
        self.login("admin")
        self.assertEqual(self.client.delete("/work-sessions/{}".format(session_id)).status_code, 403)

        self.client.post("/auth/logout")
        self.login("encargada")
        self.assertEqual(self.client.delete("/work-sessions/{}".format(session_id)).status_code, 204)
        self.assertEqual(self.client.get("/work-sessions/{}".format(session_id)).status_code, 404)
        self.assertEqual(self.client.post("/work-sessions/{}/finish".format(session_id)).status_code, 404)
        self.assertEqual(self.services.recorder.open_count, 0)
        self.assertEqual(self.client.get("/products/{}".format(agua)).json()["quantity"], 22)

    def test_product_lifecycle(self):
        self.login("admin")
        response = self.client.post("/products", json={"name": "Vasos", "unit": "pz", "quantity": "20"})
        self.assertEqual(response.status_code, 201)
        product_id = response.json()["id"]

        response = self.client.patch("/products/{}/details".format(product_id), json={"description": "Desechables"})
        self.assertEqual(response.json()["history"][0]["changes"], ["description"])
        self.assertEqual(
            self.client.patch("/products/{}/details".format(product_id), json={"quantity": 1}).status_code, 400
        )

        self.client.post("/products/{}/deactivate".format(product_id))
        self.assertIn(product_id, [p["id"] for p in self.client.get("/products/inactive").json()])
        self.assertNotIn(product_id, [p["id"] for p in self.client.get("/products").json()])

        self.assertEqual(self.client.delete("/products/{}".format(product_id)).status_code, 400)
        self.assertEqual(self.client.delete("/products/{}?confirm=true".format(product_id)).status_code, 200)
        self.assertEqual(self.client.get("/products/{}".format(product_id)).status_code, 404)

    def test_backup_export_and_restore(self):
        self.login("admin")
        response = self.client.get("/backup/export")
        self.assertEqual(response.status_code, 200)
        self.assertIn("backup_productos_", response.headers["content-disposition"])
        snapshot = response.json()
        self.assertEqual(len(snapshot), 5)

        self.assertEqual(self.client.post("/backup/restore", json=snapshot[:2]).status_code, 400)
        response = self.client.post("/backup/restore?confirm=true", json=snapshot[:2])
        self.assertEqual(response.json(), {"deleted": 5, "inserted": 2})
        self.assertEqual(len(self.client.get("/products").json()), 2)

        self.assertEqual(self.client.post("/backup/restore?confirm=true", json={"bad": 1}).status_code, 400)

        response = self.client.post("/backup/reset?confirm=true")
        self.assertEqual(response.json(), {"productsReset": 2, "jobsDeleted": 0})

    def test_history_feed(self):
        self.login("encargada")
        agua = self.product_id("Agua Mineral")
        self.client.post("/products/{}/restock".format(agua), json={"amount": 2})

        feed = self.client.get("/history", params={"search": "agua"}).json()
        self.assertEqual(len(feed), 1)
        self.assertEqual(feed[0]["productName"], "Agua Mineral")
        self.assertEqual(feed[0]["description"], "Agregaste 2 botellas")
        self.assertEqual(len(self.client.get("/history/dates").json()), 1)
        self.assertEqual(self.client.get("/history", params={"date": "yesterday"}).status_code, 400)

    def test_announcements(self):
        self.login("admin")
        created = self.client.post("/announcements", json={"message": "Inventario el lunes"})
        self.assertEqual(created.status_code, 201)
        announcement_id = created.json()["id"]
        self.assertEqual(self.client.post("/announcements", json={"message": " "}).status_code, 400)

        self.client.post("/auth/logout")
        self.login("encargada")
        unseen = self.client.get("/announcements/unseen").json()
        self.assertEqual([item["id"] for item in unseen], [announcement_id])
        self.client.post("/announcements/seen", json={"ids": [announcement_id]})
        self.assertEqual(self.client.get("/announcements/unseen").json(), [])
        self.assertEqual(self.client.delete("/announcements/{}".format(announcement_id)).status_code, 403)


if __name__ == "__main__":
    unittest.main()
