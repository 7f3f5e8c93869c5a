"""Tests for the create_user CLI against an in-memory database."""

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import verify_password
from app.models import Base, User
from app.scripts import create_user


class TestCreateUserCli(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)
        patcher = patch.object(create_user, "SessionLocal", self.SessionLocal)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def test_creates_admin(self) -> None:
        code = create_user.main(["Site Admin", "Admin@Example.com", "password123", "admin"])
        self.assertEqual(code, 0)
        db = self.SessionLocal()
        try:
            user = db.query(User).one()
            self.assertEqual(user.email, "admin@example.com")
            self.assertEqual(user.role, "admin")
            self.assertTrue(verify_password("password123", user.password_hash))
        finally:
            db.close()

    def test_duplicate_email_fails(self) -> None:
        self.assertEqual(create_user.main(["Ada", "ada@example.com", "password123"]), 0)
        self.assertEqual(create_user.main(["Ada", "ada@example.com", "password123"]), 1)

    def test_invalid_input_fails(self) -> None:
        self.assertEqual(create_user.main(["Ada", "not-an-email", "password123"]), 1)
        self.assertEqual(create_user.main(["Ada", "ada@example.com", "short"]), 1)


if __name__ == "__main__":
    unittest.main()
