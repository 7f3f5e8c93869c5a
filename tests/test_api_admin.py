"""API tests for /api/admin: dashboard, health, user management, file management and profile."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from PIL import Image

from api_support import ApiTestCase, csv_bytes, png_bytes

from app.models import Chart, StoredFile


class AdminTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = self.create_admin()
        self.user = self.register("Ada", "ada@example.com")

    def _get(self, path: str, token: str | None = None):
        return self.client.get(f"/api/admin{path}", headers=self.auth(token or self.admin))


class TestDashboard(AdminTestCase):
    def test_stats(self) -> None:
        self.upload_csv(self.user)
        resp = self._get("/dashboard/stats")
        self.assertEqual(resp.status_code, 200, resp.text)
        stats = resp.json()["data"]
        self.assertEqual(stats["total_users"], 2)
        self.assertEqual(stats["admin_users"], 1)
        self.assertEqual(stats["active_users"], 2)
        self.assertEqual(stats["active_users_percentage"], 100)
        self.assertEqual(stats["total_files"], 1)
        self.assertEqual(stats["processed_files"], 1)
        self.assertEqual(stats["new_files"], 1)
        self.assertEqual(stats["previous_new_files"], 0)
        self.assertEqual(stats["file_change"], 0)
        self.assertIn({"type": "CSV", "count": 1}, stats["file_types"])
        self.assertGreater(stats["storage_used_bytes"], 0)
        self.assertTrue(stats["user_growth"])
        self.assertEqual(stats["recent_activity"][0]["action"], "Uploaded sales.csv")
        self.assertEqual(stats["recent_activity"][0]["user"], "Ada")

    def test_window_validation(self) -> None:
        self.assertEqual(self._get("/dashboard/stats?range=month").status_code, 200)
        self.assertEqual(self._get("/dashboard/stats?range=decade").status_code, 400)
        resp = self._get("/dashboard/stats?start_date=2026-05-01T00:00:00&end_date=2026-04-01T00:00:00")
        self.assertEqual(resp.status_code, 400)

    def test_file_analytics(self) -> None:
        self.upload_csv(self.user)
        self.upload_json(self.user, "rows.json", [{"a": 1}])
        resp = self._get("/files/analytics?timeframe=7d")
        self.assertEqual(resp.status_code, 200, resp.text)
        data = resp.json()["data"]
        self.assertEqual(data["timeframe"], "7d")
        self.assertEqual({d["type"] for d in data["daily_uploads"]}, {"csv", "json"})
        self.assertEqual(sum(t["count"] for t in data["top_file_types"]), 2)
        self.assertEqual(len(data["top_downloads"]), 2)
        self.assertEqual(self._get("/files/analytics?timeframe=1y").status_code, 400)


class TestHealth(AdminTestCase):
    def test_system_health(self) -> None:
        resp = self._get("/health")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["database"], "connected")
        self.assertEqual(data["api_status"], "operational")
        self.assertGreaterEqual(data["uptime"], 0)

    def test_requires_admin(self) -> None:
        self.assertEqual(self._get("/health", self.user).status_code, 403)
        self.assertEqual(self.client.get("/api/admin/health").status_code, 401)

    def test_public_health(self) -> None:
        resp = self.client.get("/api/v1/health")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["message"], "Server is running")
        self.assertEqual(body["data"]["status"], "ok")
        self.assertEqual(body["data"]["database"], "connected")


class TestUsers(AdminTestCase):
    def test_list_and_search(self) -> None:
        self.register("Bob", "bob@example.com")
        data = self._get("/users?sort_by=email&sort_order=asc").json()["data"]
        self.assertEqual(data["total"], 3)
        self.assertEqual([u["email"] for u in data["users"]], ["ada@example.com", "admin@example.com", "bob@example.com"])
        self.assertEqual(self._get("/users?search=BOB").json()["data"]["total"], 1)
        self.assertEqual(self._get("/users?role=admin").json()["data"]["total"], 1)
        self.assertEqual(self._get("/users?status=inactive").json()["data"]["total"], 0)

    def test_create_and_duplicate(self) -> None:
        body = {"name": "Carol", "email": "carol@example.com", "password": "password123", "role": "admin"}
        resp = self.client.post("/api/admin/users", headers=self.auth(self.admin), json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["data"]["role"], "admin")
        self.login("carol@example.com")

        resp = self.client.post("/api/admin/users", headers=self.auth(self.admin), json=body)
        self.assertEqual(resp.status_code, 409)

    def test_update_role_and_status(self) -> None:
        uid = self.user_id(self.user)
        resp = self.client.patch(f"/api/admin/users/{uid}", headers=self.auth(self.admin), json={"role": "admin"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["role"], "admin")
        self.assertEqual(self._get("/health", self.user).status_code, 200)

        self.client.patch(f"/api/admin/users/{uid}", headers=self.auth(self.admin), json={"status": "inactive"})
        self.assertEqual(self.client.get("/api/v1/auth/me", headers=self.auth(self.user)).status_code, 403)

    def test_get_missing_user(self) -> None:
        self.assertEqual(self._get("/users/9999").status_code, 404)

    def test_cannot_delete_self(self) -> None:
        admin_id = self.user_id(self.admin)
        resp = self.client.delete(f"/api/admin/users/{admin_id}", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "You cannot delete your own account")

    def test_delete_removes_users_data(self) -> None:
        uid = self.user_id(self.user)
        f = self.upload_csv(self.user)
        self.client.post(f"/api/v1/charts/generate/{f['id']}", headers=self.auth(self.user), json={})

        resp = self.client.delete(f"/api/admin/users/{uid}", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self._get(f"/users/{uid}").status_code, 404)
        db = self.SessionLocal()
        try:
            self.assertEqual(db.query(StoredFile).count(), 0)
            self.assertEqual(db.query(Chart).count(), 0)
        finally:
            db.close()


class TestFiles(AdminTestCase):
    def test_list_across_users(self) -> None:
        self.upload_csv(self.user)
        bob = self.register("Bob", "bob@example.com")
        self.upload_csv(bob, "bob.csv", [["x", "y"], ["a", 1]])

        data = self._get("/files").json()["data"]
        self.assertEqual(data["total"], 2)
        self.assertTrue(all(f["user"] for f in data["files"]))

        bob_id = self.user_id(bob)
        only_bob = self._get(f"/files?user_id={bob_id}").json()["data"]
        self.assertEqual(only_bob["total"], 1)
        self.assertEqual(only_bob["files"][0]["user"]["email"], "bob@example.com")

    def test_upload_multiple_keeps_good_files(self) -> None:
        resp = self.client.post(
            "/api/admin/files/upload-multiple",
            headers=self.auth(self.admin),
            files=[
                ("files", ("one.csv", csv_bytes([["a", "b"], [1, 2]]), "text/csv")),
                ("files", ("notes.txt", b"plain text", "text/plain")),
                ("files", ("two.csv", csv_bytes([["a", "b"], [3, 4]]), "text/csv")),
            ],
            data={"tags": "bulk"},
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        data = resp.json()["data"]
        self.assertEqual([f["originalname"] for f in data["files"]], ["one.csv", "two.csv"])
        self.assertEqual(data["files"][0]["tags"], ["bulk"])
        self.assertEqual(len(data["errors"]), 1)
        self.assertEqual(data["errors"][0]["filename"], "notes.txt")
        self.assertEqual(self._get("/files").json()["data"]["total"], 2)

    def test_upload_multiple_reports_undecodable_files(self) -> None:
        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            resp = self.client.post(
                "/api/admin/files/upload-multiple",
                headers=self.auth(self.admin),
                files=[
                    ("files", ("huge.png", png_bytes(100, 100), "image/png")),
                    ("files", ("broken.json", b"{nope", "application/json")),
                    ("files", ("kept.csv", csv_bytes([["a", "b"], [1, 2]]), "text/csv")),
                ],
            )
        self.assertEqual(resp.status_code, 201, resp.text)
        data = resp.json()["data"]
        self.assertEqual([f["originalname"] for f in data["files"]], ["kept.csv"])
        self.assertEqual([e["filename"] for e in data["errors"]], ["huge.png", "broken.json"])
        self.assertEqual(self._get("/files").json()["data"]["total"], 1)

    def test_list_date_range(self) -> None:
        self.upload_csv(self.user)
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        before = (now - timedelta(days=1)).isoformat()
        after = (now + timedelta(days=1)).isoformat()
        for params, expected in (
            ({"start_date": before}, 1),
            ({"start_date": after}, 0),
            ({"end_date": before}, 0),
            ({"end_date": after}, 1),
        ):
            resp = self.client.get("/api/admin/files", headers=self.auth(self.admin), params=params)
            self.assertEqual(resp.json()["data"]["total"], expected, params)

    def test_upload_multiple_limit(self) -> None:
        files = [("files", (f"f{i}.csv", csv_bytes([["a"], [i]]), "text/csv")) for i in range(11)]
        resp = self.client.post("/api/admin/files/upload-multiple", headers=self.auth(self.admin), files=files)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self._get("/files").json()["data"]["total"], 0)

    def test_manage_any_users_file(self) -> None:
        f = self.upload_csv(self.user)
        fid = f["id"]
        self.assertEqual(self._get(f"/files/{fid}/status").json()["data"]["status"], "processed")

        resp = self.client.patch(f"/api/admin/files/{fid}", headers=self.auth(self.admin), json={"description": "checked"})
        self.assertEqual(resp.json()["data"]["description"], "checked")

        resp = self.client.post(f"/api/admin/files/{fid}/reprocess", headers=self.auth(self.admin))
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["status"], "processed")

        self.assertEqual(self._get(f"/files/{fid}/download").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/admin/files/{fid}", headers=self.auth(self.admin)).status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/files/{fid}", headers=self.auth(self.user)).status_code, 404)

    def test_admin_upload(self) -> None:
        resp = self.upload(self.admin, "admin.csv", csv_bytes([["a"], [1]]), "text/csv", url="/api/admin/files/upload")
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["data"]["file"]["user"]["email"], "admin@example.com")
        self.assertEqual(self.upload(self.user, "u.csv", b"a\n1\n", "text/csv", url="/api/admin/files/upload").status_code, 403)


class TestProfile(AdminTestCase):
    def test_get_and_update(self) -> None:
        self.assertEqual(self._get("/profile").json()["data"]["email"], "admin@example.com")
        resp = self.client.put("/api/admin/profile", headers=self.auth(self.admin), json={"name": "Head Admin"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["name"], "Head Admin")
        self.assertEqual(resp.json()["data"]["role"], "admin")


if __name__ == "__main__":
    unittest.main()
