import io
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

from support import MANAGER, add_product, make_services

from stockledger.cli import parse_args, run
from stockledger.core.exceptions import AuthenticationError, PermissionDeniedError
from stockledger.core.session_store import MemorySessionStore


class CliTest(unittest.TestCase):
    def setUp(self):
        self.services = make_services()
        self.addCleanup(self.services.close)
        self.store = MemorySessionStore()
        self.agua = add_product(self.services, "Agua Mineral", 24, unit="botellas")

    def cli(self, *argv):
        output = io.StringIO()
        with redirect_stdout(output):
            code = run(parse_args(list(argv)), self.services, self.store)
        return code, output.getvalue()

    def record_usage(self, amount):
        session = self.services.recorder.start(MANAGER)
        session.record_usage(self.agua, amount)
        return self.services.recorder.finish(session)

    def test_login_restock_and_rollback(self):
        self.assertEqual(self.cli("login", "admin", "admin"), (0, "Logged in as Admin (admin)\n"))
        self.assertEqual(self.cli("whoami"), (0, "Admin (admin)\n"))

        code, output = self.cli("restock", self.agua, "6")
        self.assertEqual(code, 0)
        self.assertEqual(output, "Agua Mineral: 30 botellas\n")
        self.assertEqual(self.cli("rollback", "--yes"), (0, "No jobs recorded.\n"))

        job = self.record_usage("5")
        code, output = self.cli("last-job")
        self.assertEqual(code, 0)
        self.assertIn("Job {} by Encargada".format(job.id), output)
        self.assertIn("Agua Mineral: usaste 5 botellas", output)

        code, output = self.cli("rollback", "--yes")
        self.assertEqual(code, 0)
        self.assertIn("Reverted 1 product(s).", output)
        self.assertEqual(self.services.products.get(self.agua).quantity, 30)
        self.assertIsNone(self.services.jobs.get_last_job())

    def test_rollback_prompt_can_be_declined(self):
        self.cli("login", "admin", "admin")
        self.record_usage("5")

        with patch("builtins.input", return_value="n"):
            code, output = self.cli("rollback")

        self.assertEqual(code, 1)
        self.assertTrue(output.endswith("Cancelled.\n"))
        self.assertEqual(self.services.products.get(self.agua).quantity, 19)
        self.assertIsNotNone(self.services.jobs.get_last_job())

    def test_adjust_and_product_listing(self):
        self.cli("login", "encargada", "encargada")
        self.assertEqual(self.cli("adjust", self.agua, "12,5"), (0, "Agua Mineral: 12.5 botellas\n"))

        code, output = self.cli("products")
        self.assertEqual(code, 0)
        self.assertEqual(output, "{}  Agua Mineral: 12.5 botellas\n".format(self.agua))
        with self.assertRaises(PermissionDeniedError):
            self.cli("products", "--inactive")

    def test_commands_need_a_logged_in_user(self):
        self.assertEqual(self.cli("whoami"), (1, "Not logged in.\n"))
        with self.assertRaises(AuthenticationError):
            self.cli("restock", self.agua, "1")

        self.cli("login", "encargada", "encargada")
        self.record_usage("2")
        with self.assertRaises(PermissionDeniedError):
            self.cli("rollback", "--yes")

        self.assertEqual(self.cli("logout"), (0, "Logged out.\n"))
        self.assertIsNone(self.services.auth.current_user(self.store))


if __name__ == "__main__":
    unittest.main()
