import unittest

from stockledger.core.exceptions import ValidationError
from stockledger.schemas.product import HistoryEntry
from stockledger.services.ledger import (
    clamp_quantity,
    format_quantity,
    new_session_id,
    parse_number,
    prepend_entry,
    strip_session,
)


def _entry(timestamp, session_id=None):
    return HistoryEntry(timestamp=timestamp, type="usage", amount=-1, session_id=session_id)


class ParseNumberTest(unittest.TestCase):
    def test_accepts_numbers_and_text(self):
        self.assertEqual(parse_number(3), 3)
        self.assertEqual(parse_number("3"), 3)
        self.assertEqual(parse_number(" 4.0 "), 4)
        self.assertEqual(parse_number("2,5"), 2.5)
        self.assertEqual(parse_number(0), 0)

    def test_rejects_invalid_input(self):
        for raw in (None, "", "   ", "abc", True, "nan", "inf"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValidationError):
                    parse_number(raw)

    def test_sign_rules(self):
        with self.assertRaises(ValidationError):
            parse_number("-1")
        self.assertEqual(parse_number("-1", allow_negative=True), -1)
        with self.assertRaises(ValidationError):
            parse_number(0, allow_zero=False)


class QuantityTest(unittest.TestCase):
    def test_clamp_never_negative(self):
        self.assertEqual(clamp_quantity(-3), 0)
        self.assertEqual(clamp_quantity(2.5), 2.5)
        self.assertEqual(clamp_quantity(0.1 + 0.2), 0.3)
        self.assertEqual(clamp_quantity(6.0), 6)
        self.assertIsInstance(clamp_quantity(6.0), int)

    def test_format_quantity(self):
        self.assertEqual(format_quantity(5.0), "5")
        self.assertEqual(format_quantity(1.25), "1.25")
        self.assertEqual(format_quantity(None), "")


class HistoryTest(unittest.TestCase):
    def test_prepend_caps_history(self):
        history = [_entry(timestamp) for timestamp in range(30, 0, -1)]
        newest = _entry(100)

        result = prepend_entry(history, newest, limit=30)

        self.assertEqual(len(result), 30)
        self.assertIs(result[0], newest)
        self.assertEqual(result[-1].timestamp, 2)
        self.assertNotIn(1, [entry.timestamp for entry in result])

    def test_prepend_below_cap_keeps_everything(self):
        history = [_entry(2), _entry(1)]
        result = prepend_entry(history, _entry(3))
        self.assertEqual([entry.timestamp for entry in result], [3, 2, 1])

    def test_strip_session_removes_every_match(self):
        history = [_entry(4, "job_a"), _entry(3, "job_b"), _entry(2, "job_a"), _entry(1)]
        result = strip_session(history, "job_a")
        self.assertEqual([entry.timestamp for entry in result], [3, 1])

    def test_session_ids_are_unique(self):
        first = new_session_id(timestamp=1000)
        second = new_session_id(timestamp=1000)
        self.assertTrue(first.startswith("job_1000_"))
        self.assertNotEqual(first, second)

    def test_legacy_entries_get_a_type(self):
        usage = HistoryEntry.model_validate({"timestamp": 1, "amount": -2, "user": "Encargada"})
        restock = HistoryEntry.model_validate({"timestamp": 2, "amount": 24, "user": "Admin"})
        self.assertEqual(usage.type, "usage")
        self.assertEqual(restock.type, "restock")


if __name__ == "__main__":
    unittest.main()
