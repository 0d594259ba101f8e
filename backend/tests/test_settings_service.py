import unittest
from flask import Flask

from buffet_pos.extensions import db
from buffet_pos.models import Setting
from buffet_pos.services import settings_service
from buffet_pos.validation import ValidationError


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from buffet_pos import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(Setting).delete()
        db.session.commit()

    def test_upsert_creates_then_updates(self):
        settings_service.upsert_setting("store_name", "Lotus Buffet")
        settings_service.upsert_setting("store_name", "Lotus Buffet & Grill")

        self.assertEqual(db.session.query(Setting).count(), 1)
        self.assertEqual(settings_service.get_value("store_name"), "Lotus Buffet & Grill")

    def test_non_string_values_are_stored_as_text(self):
        row = settings_service.upsert_setting("tax_rate", 0)
        self.assertEqual(row.value, "0")

    def test_get_value_default(self):
        self.assertEqual(settings_service.get_value("currency", "USD"), "USD")
        settings_service.upsert_setting("currency", None)
        self.assertEqual(settings_service.get_value("currency", "USD"), "USD")

    def test_blank_key_rejected(self):
        with self.assertRaises(ValidationError):
            settings_service.upsert_setting("   ", "x")

    def test_upsert_many_is_one_commit(self):
        rows = settings_service.upsert_many({"paper_size": "55mm", "receipt_footer": "Thanks"})
        self.assertEqual(len(rows), 2)
        self.assertEqual(settings_service.as_dict(), {"paper_size": "55mm", "receipt_footer": "Thanks"})

    def test_upsert_many_requires_values(self):
        with self.assertRaises(ValidationError):
            settings_service.upsert_many({})

    def test_ensure_defaults_keeps_existing(self):
        settings_service.upsert_setting("store_name", "Custom Name")
        created = settings_service.ensure_defaults({"store_name": "Default", "paper_size": "88mm"})

        self.assertEqual(created, 1)
        self.assertEqual(settings_service.get_value("store_name"), "Custom Name")
        self.assertEqual(settings_service.get_value("paper_size"), "88mm")

    def test_list_is_sorted_by_key(self):
        settings_service.upsert_many({"zeta": "1", "alpha": "2"})
        self.assertEqual([row.key for row in settings_service.list_settings()], ["alpha", "zeta"])


if __name__ == "__main__":
    unittest.main()
