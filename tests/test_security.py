"""Unit tests for password hashing and JWT issuance/verification."""

import base64
import json
import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    user_id_from_token,
    verify_password,
)


def _sign(claims: dict, secret: str | None = None) -> str:
    return jwt.encode(claims, secret or settings.JWT_SECRET.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret-password")
        self.assertNotEqual(hashed, "s3cret-password")
        self.assertTrue(verify_password("s3cret-password", hashed))
        self.assertFalse(verify_password("wrong-password", hashed))

    def test_malformed_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestAccessToken(unittest.TestCase):
    def test_round_trip_claims(self) -> None:
        payload = decode_access_token(create_access_token(42, "admin"))
        self.assertEqual(payload["sub"], "42")
        self.assertEqual(payload["role"], "admin")
        self.assertGreater(payload["exp"], payload["iat"])
        self.assertEqual(user_id_from_token(create_access_token(7, "user")), 7)

    def test_custom_lifetime(self) -> None:
        payload = decode_access_token(create_access_token(1, "user", expires_delta=timedelta(minutes=5)))
        self.assertEqual(payload["exp"] - payload["iat"], 300)

    def test_tampered_payload_rejected(self) -> None:
        header, _, signature = create_access_token(1, "user").split(".")
        forged = base64.urlsafe_b64encode(json.dumps({"sub": "1", "role": "admin"}).encode()).rstrip(b"=").decode()
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(f"{header}.{forged}.{signature}")

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(1, "user", expires_delta=timedelta(hours=-1))
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_other_secret_rejected(self) -> None:
        now = datetime.now(UTC)
        token = _sign({"sub": "1", "role": "admin", "iat": now, "exp": now + timedelta(hours=1)}, "another-secret")
        with self.assertRaises(jwt.InvalidSignatureError):
            decode_access_token(token)

    def test_missing_expiry_rejected(self) -> None:
        with self.assertRaises(jwt.MissingRequiredClaimError):
            decode_access_token(_sign({"sub": "1", "role": "user", "iat": datetime.now(UTC)}))

    def test_non_numeric_subject_rejected(self) -> None:
        now = datetime.now(UTC)
        token = _sign({"sub": "ada", "role": "user", "iat": now, "exp": now + timedelta(hours=1)})
        with self.assertRaises(jwt.InvalidTokenError):
            user_id_from_token(token)


if __name__ == "__main__":
    unittest.main()
