"""
Tests for transactions, payload parsing and small text helpers.
"""
import unittest

from sqlalchemy import DateTime
from sqlmodel import Session, select

from core.exceptions import ConflictError, ValidationError
from core.utils import str_limit, storage_url, strip_tags, utcnow, word_count
from database import run_in_transaction, session_scope
from models.category import ResourceCategory
from models.contact_inquiry import ContactInquiry
from models.faq import Faq, FaqCategory
from models.resource import Resource
from schemas import parse_payload
from schemas.category import ResourceCategoryCreate
from tests.base import DatabaseTestCase


class TestTransactions(DatabaseTestCase):

    def test_unique_violation_becomes_conflict_and_rolls_back(self):
        self.session.add(FaqCategory(name="General", slug="general"))
        self.session.commit()

        def write():
            self.session.add(FaqCategory(name="Other", slug="other"))
            self.session.flush()
            self.session.add(FaqCategory(name="General again", slug="general"))
            self.session.flush()

        with self.assertRaises(ConflictError):
            run_in_transaction(self.session, write)
        names = self.session.exec(select(FaqCategory.name)).all()
        self.assertEqual(names, ["General"])

    def test_other_errors_roll_back_and_propagate(self):
        def write():
            self.session.add(FaqCategory(name="Billing", slug="billing"))
            self.session.flush()
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            run_in_transaction(self.session, write)
        self.assertEqual(self.session.exec(select(FaqCategory)).all(), [])

    def test_session_scope_commits(self):
        with session_scope(self.engine) as session:
            session.add(FaqCategory(name="Products", slug="products"))
        with Session(self.engine) as session:
            self.assertEqual(len(session.exec(select(FaqCategory)).all()), 1)


class TestTimestampColumns(DatabaseTestCase):

    def test_timestamps_are_plain_datetime_columns(self):
        for model in (ResourceCategory, Resource, FaqCategory, Faq, ContactInquiry):
            for column in model.__table__.columns:
                if column.name.endswith("_at"):
                    self.assertIs(type(column.type), DateTime, f"{model.__name__}.{column.name}")
                    self.assertFalse(column.type.timezone)

    def test_naive_utc_timestamps_are_stored(self):
        category = ResourceCategory(name="Design", slug="design", deleted_at=utcnow())
        self.session.add(category)
        self.session.commit()
        self.session.expire_all()

        stored = self.session.get(ResourceCategory, category.id)
        self.assertIsNone(stored.created_at.tzinfo)
        self.assertIsNotNone(stored.deleted_at)


class TestParsePayload(unittest.TestCase):

    def test_errors_are_keyed_by_field(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_payload(ResourceCategoryCreate, {"name": "", "color": "red", "sort_order": -1})
        self.assertEqual(set(ctx.exception.errors), {"name", "color", "sort_order"})
        self.assertIn("name:", str(ctx.exception))

    def test_schema_instances_pass_through(self):
        data = ResourceCategoryCreate(name="Design")
        self.assertIs(parse_payload(ResourceCategoryCreate, data), data)


class TestTextHelpers(unittest.TestCase):

    def test_word_count_ignores_markup(self):
        self.assertEqual(word_count(strip_tags("<p>It's a well-known <b>fact</b></p>")), 4)

    def test_str_limit(self):
        self.assertEqual(str_limit("short", 10), "short")
        self.assertEqual(str_limit("a long sentence here", 6), "a long...")

    def test_storage_url(self):
        self.assertIsNone(storage_url("http://cms.test", None))
        self.assertEqual(storage_url("http://cms.test/", "/img/a.png"), "http://cms.test/storage/img/a.png")
        self.assertEqual(storage_url("http://cms.test", "https://cdn.test/a.png"), "https://cdn.test/a.png")


if __name__ == "__main__":
    unittest.main()
