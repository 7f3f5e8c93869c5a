"""API tests for notifications: visibility, read receipts, admin creation and deletion."""

import unittest
from datetime import datetime, timedelta, timezone

from api_support import ApiTestCase

from app.models import Notification


class NotificationTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.create_admin("admin@example.com")
        self.user = self.register("Ada", "ada@example.com")
        self.ada_id = self.user_id(self.user)

    def _send(self, token: str | None = None, **body) -> dict:
        payload = {"title": "Heads up", "message": "Maintenance tonight", **body}
        resp = self.client.post("/api/v1/notifications", headers=self.auth(token or self.admin), json=payload)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()["data"]

    def _list(self, token: str, query: str = "", prefix: str = "/api/v1") -> dict:
        resp = self.client.get(f"{prefix}/notifications{query}", headers=self.auth(token))
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["data"]


class TestVisibility(NotificationTestCase):
    def test_broadcasts_visible_to_admins_only(self) -> None:
        # Registration of Ada produced a broadcast.
        admin_view = self._list(self.admin)
        self.assertEqual(admin_view["total_count"], 1)
        self.assertEqual(admin_view["notifications"][0]["title"], "New User Registration")
        self.assertIsNone(admin_view["notifications"][0]["recipient_id"])
        self.assertEqual(self._list(self.user)["total_count"], 0)

    def test_addressed_notification_visible_to_recipient_only(self) -> None:
        self._send(recipient_id=self.ada_id, type="warning")
        other = self.register("Bob", "bob@example.com")
        user_view = self._list(self.user)
        self.assertEqual(user_view["total_count"], 1)
        self.assertEqual(user_view["unread_count"], 1)
        self.assertEqual(user_view["notifications"][0]["type"], "warning")
        self.assertEqual(self._list(other)["total_count"], 0)

    def test_expired_and_inactive_hidden(self) -> None:
        db = self.SessionLocal()
        try:
            db.add_all(
                [
                    Notification(
                        title="Old",
                        message="m",
                        recipient_id=self.ada_id,
                        expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
                    ),
                    Notification(title="Off", message="m", recipient_id=self.ada_id, is_active=False),
                    Notification(
                        title="Soon",
                        message="m",
                        recipient_id=self.ada_id,
                        expires_at=datetime.now(timezone.utc) + timedelta(days=1),
                    ),
                ]
            )
            db.commit()
        finally:
            db.close()
        titles = [n["title"] for n in self._list(self.user)["notifications"]]
        self.assertEqual(titles, ["Soon"])

    def test_pagination_and_unread_only(self) -> None:
        for i in range(3):
            self._send(recipient_id=self.ada_id, title=f"Note {i}")
        page = self._list(self.user, "?page=1&limit=2")
        self.assertEqual(len(page["notifications"]), 2)
        self.assertEqual(page["total_count"], 3)
        self.assertEqual(page["current_page"], 1)
        self.assertEqual(page["items_per_page"], 2)

        self.client.patch(f"/api/v1/notifications/{page['notifications'][0]['id']}/read", headers=self.auth(self.user))
        unread = self._list(self.user, "?unread_only=true")
        self.assertEqual(unread["total_count"], 2)
        self.assertEqual(unread["unread_count"], 2)

        resp = self.client.get("/api/v1/notifications?limit=101", headers=self.auth(self.user))
        self.assertEqual(resp.status_code, 400)


class TestReadReceipts(NotificationTestCase):
    def test_mark_read(self) -> None:
        note = self._send(recipient_id=self.ada_id)
        self.assertFalse(note["read"])
        resp = self.client.patch(f"/api/v1/notifications/{note['id']}/read", headers=self.auth(self.user))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["data"]["read"])
        self.assertEqual(self._list(self.user)["unread_count"], 0)

    def test_cannot_mark_someone_elses(self) -> None:
        note = self._send(recipient_id=self.ada_id)
        other = self.register("Bob", "bob@example.com")
        resp = self.client.patch(f"/api/v1/notifications/{note['id']}/read", headers=self.auth(other))
        self.assertEqual(resp.status_code, 403)
        resp = self.client.patch("/api/v1/notifications/9999/read", headers=self.auth(other))
        self.assertEqual(resp.status_code, 404)

    def test_broadcast_read_is_per_admin(self) -> None:
        second_admin = self.create_admin("root@example.com", name="Root")
        broadcast = self._list(self.admin)["notifications"][0]
        self.client.patch(f"/api/v1/notifications/{broadcast['id']}/read", headers=self.auth(self.admin))
        self.assertEqual(self._list(self.admin)["unread_count"], 0)
        self.assertEqual(self._list(second_admin)["unread_count"], 1)
        self.assertFalse(self._list(second_admin)["notifications"][0]["read"])

    def test_mark_all_read(self) -> None:
        self._send(recipient_id=self.ada_id)
        self._send(recipient_id=self.ada_id, title="Second")
        resp = self.client.patch("/api/v1/notifications/mark-all-read", headers=self.auth(self.user))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["updated"], 2)
        self.assertEqual(self._list(self.user)["unread_count"], 0)

    def test_stats(self) -> None:
        self._send(recipient_id=self.ada_id, type="info")
        self._send(recipient_id=self.ada_id, type="warning")
        self._send(recipient_id=self.ada_id, type="warning")
        stats = self.client.get("/api/v1/notifications/stats", headers=self.auth(self.user)).json()["data"]
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["unread_count"], 3)
        self.assertEqual(stats["by_type"], [{"type": "info", "count": 1}, {"type": "warning", "count": 2}])


class TestCreateAndDelete(NotificationTestCase):
    def test_only_admins_create(self) -> None:
        resp = self.client.post(
            "/api/v1/notifications",
            headers=self.auth(self.user),
            json={"title": "x", "message": "y"},
        )
        self.assertEqual(resp.status_code, 403)

    def test_create_validation(self) -> None:
        for body in ({"title": "", "message": "y"}, {"title": "x", "message": "y", "type": "loud"}, {"title": "x" * 201, "message": "y"}):
            resp = self.client.post("/api/v1/notifications", headers=self.auth(self.admin), json=body)
            self.assertEqual(resp.status_code, 400, body)
        resp = self.client.post(
            "/api/v1/notifications",
            headers=self.auth(self.admin),
            json={"title": "x", "message": "y", "recipient_id": 9999},
        )
        self.assertEqual(resp.status_code, 404)

    def test_delete_rules(self) -> None:
        note = self._send(recipient_id=self.ada_id)
        other = self.register("Bob", "bob@example.com")
        self.assertEqual(self.client.delete(f"/api/v1/notifications/{note['id']}", headers=self.auth(other)).status_code, 403)
        self.assertEqual(self.client.delete(f"/api/v1/notifications/{note['id']}", headers=self.auth(self.user)).status_code, 200)
        self.assertEqual(self._list(self.user)["total_count"], 0)

    def test_admin_mirror(self) -> None:
        data = self._list(self.admin, prefix="/api/admin")
        self.assertEqual(data["total_count"], 1)
        resp = self.client.get("/api/admin/notifications", headers=self.auth(self.user))
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()
