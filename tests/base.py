"""
Shared fixture: every test gets its own in-memory SQLite database.
"""
import unittest

from sqlmodel import Session, SQLModel

from database import make_engine, create_db_and_tables


class DatabaseTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine("sqlite://")
        create_db_and_tables(self.engine)
        self.session = Session(self.engine)

    def tearDown(self):
        self.session.close()
        SQLModel.metadata.drop_all(self.engine)
        self.engine.dispose()
