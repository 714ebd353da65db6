"""
HTTP 端到端测试（TestClient）：认证流程、论文提交/可见性/编辑/删除、审核、检索、错误格式
"""

import json

import pytest
from sqlalchemy import func
from sqlmodel import select

from src.auth.session import create_token, decode_token
from src.db.models import Paper, User
from src.observability.metrics import metrics

from conftest import MB, pdf_bytes


def _form(reference, **overrides):
    data = {
        "title": "Edge Computing for Smart Farms",
        "abstract": "Latency measurements on low-power devices.",
        "keywords": "edge, iot",
        "category": "Distributed Systems",
        "department_id": str(reference["cse"]),
        "publication_date": "2024-03-15",
        "corresponding_author": "Alice Rahman",
        "co_authors": json.dumps([{"name": "Tanvir Ahmed", "order": 1}, {"name": "Nadia Islam", "order": 2}]),
    }
    data.update(overrides)
    return data


def _pdf(size=4096, name="paper.pdf", content_type="application/pdf"):
    return {"file": (name, pdf_bytes(size), content_type)}


@pytest.fixture
def submit(client, reference, auth_headers):
    def _submit(requester, size=4096, **overrides):
        return client.post(
            "/api/papers",
            data=_form(reference, **overrides),
            files=_pdf(size),
            headers=auth_headers(requester),
        )

    return _submit


# ── 认证 ──

class TestAuthRoutes:
    def test_register_then_login(self, client, reference):
        resp = client.post("/api/auth/register", json={
            "name": "Farhan", "email": "farhan@example.edu", "password": "pw123456",
            "department_id": reference["cse"], "faculty_id": reference["data_sciences"],
        })
        assert resp.status_code == 201
        assert resp.json()["message"] == "User registered successfully"
        user_id = resp.json()["id"]

        resp = client.post("/api/auth/login", json={"email": "farhan@example.edu", "password": "pw123456"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == user_id
        assert "password_hash" not in body["user"]
        assert decode_token(body["token"])["role"] == "author"

    def test_duplicate_email(self, client, db, author):
        resp = client.post("/api/auth/register", json={
            "name": "Alice", "email": "alice@example.edu", "password": "x",
        })
        assert resp.status_code == 400
        assert resp.json() == {"error": "User already exists"}
        with db.session() as session:
            assert session.exec(select(func.count()).select_from(User)).one() == 1

    def test_register_missing_fields(self, client):
        resp = client.post("/api/auth/register", json={"email": "x@example.edu"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_register_bad_type_is_400(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "X", "email": "x@example.edu", "password": "pw", "department_id": "abc",
        })
        assert resp.status_code == 400
        assert "department_id" in resp.json()["error"]

    def test_register_admin_forbidden(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "X", "email": "x@example.edu", "password": "pw", "role": "admin",
        })
        assert resp.status_code == 403

    def test_bad_login(self, client, author):
        resp = client.post("/api/auth/login", json={"email": "alice@example.edu", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid credentials"}

    def test_profile(self, client, author, auth_headers, reference):
        resp = client.get("/api/auth/profile", headers=auth_headers(author))
        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@example.edu"

        resp = client.put("/api/auth/profile", headers=auth_headers(author), json={
            "name": "Alice R.", "department_id": reference["pharmacy"],
            "faculty_id": reference["pharmacy_school"], "designation": "faculty",
        })
        assert resp.status_code == 200
        assert resp.json()["department_name"] == "Department of Pharmacy"

    def test_missing_token_401_invalid_token_403(self, client, author):
        resp = client.get("/api/auth/profile")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Access token required"}

        resp = client.get("/api/auth/profile", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 403
        assert resp.json() == {"error": "Invalid or expired token"}

        expired = create_token(author.id, author.email, author.role, author.name, expire_hours=-1)
        resp = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {expired}"})
        assert resp.status_code == 403


# ── 论文 ──

class TestPaperRoutes:
    def test_submit_5mb_pending_flow(self, client, db, author, admin, auth_headers, submit):
        resp = submit(author, size=5 * MB)
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Paper submitted successfully and pending approval"
        assert body["fileUrl"].startswith("/uploads/paper-")
        paper_id = body["id"]

        admin_list = client.get("/api/admin/papers", headers=auth_headers(admin)).json()
        assert [(p["id"], p["status"]) for p in admin_list] == [(paper_id, "pending")]
        assert client.get("/api/papers").json() == []

        # the stored PDF is served back under the static prefix
        served = client.get(body["fileUrl"])
        assert served.status_code == 200
        assert len(served.content) == 5 * MB

    def test_15mb_rejected_without_row(self, client, db, files, author, submit):
        resp = submit(author, size=15 * MB)
        assert resp.status_code == 400
        assert resp.json() == {"error": "File too large. Maximum size is 10MB."}
        with db.session() as session:
            assert session.exec(select(Paper)).all() == []
        assert list(files.root.iterdir()) == []

    def test_non_pdf_rejected(self, client, reference, author, auth_headers):
        resp = client.post(
            "/api/papers",
            data=_form(reference),
            files=_pdf(name="notes.txt", content_type="text/plain"),
            headers=auth_headers(author),
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Only PDF files are allowed."}

    def test_submit_without_file_or_fields(self, client, reference, author, auth_headers):
        resp = client.post("/api/papers", data=_form(reference), headers=auth_headers(author))
        assert resp.status_code == 400
        assert resp.json() == {"error": "PDF file is required"}

        resp = client.post(
            "/api/papers", data=_form(reference, title=""), files=_pdf(), headers=auth_headers(author),
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required fields"}

    def test_submit_requires_token(self, client, reference):
        resp = client.post("/api/papers", data=_form(reference), files=_pdf())
        assert resp.status_code == 401

    def test_visibility(self, client, author, other_author, admin, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        assert client.get(f"/api/papers/{paper_id}").status_code == 404
        assert client.get(f"/api/papers/{paper_id}", headers=auth_headers(other_author)).status_code == 404
        # a bad token on a public route is treated as anonymous
        assert client.get(f"/api/papers/{paper_id}", headers={"Authorization": "Bearer bad"}).status_code == 404

        own = client.get(f"/api/papers/{paper_id}", headers=auth_headers(author))
        assert own.status_code == 200
        assert [c["name"] for c in own.json()["co_authors"]] == ["Tanvir Ahmed", "Nadia Islam"]
        assert client.get(f"/api/papers/{paper_id}", headers=auth_headers(admin)).status_code == 200

    def test_mine(self, client, author, other_author, auth_headers, submit):
        mine = submit(author).json()["id"]
        submit(other_author)
        rows = client.get("/api/papers/mine", headers=auth_headers(author)).json()
        assert [r["id"] for r in rows] == [mine]

    def test_non_owner_put_forbidden(self, client, author, other_author, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        resp = client.put(
            f"/api/papers/{paper_id}", json={"title": "Hijacked"}, headers=auth_headers(other_author),
        )
        assert resp.status_code == 403
        detail = client.get(f"/api/papers/{paper_id}", headers=auth_headers(author)).json()
        assert detail["title"] == "Edge Computing for Smart Farms"
        assert detail["version"] == 1

    def test_owner_put_and_versions(self, client, author, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        resp = client.put(
            f"/api/papers/{paper_id}",
            json={"title": "Edge Computing Revisited", "co_authors": [{"name": "Solo", "order": 1}]},
            headers=auth_headers(author),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Paper updated successfully"
        assert body["paper"]["title"] == "Edge Computing Revisited"
        assert [c["name"] for c in body["paper"]["co_authors"]] == ["Solo"]

        versions = client.get(f"/api/papers/{paper_id}/versions", headers=auth_headers(author)).json()
        assert [v["version_number"] for v in versions] == [2, 1]

    def test_delete(self, client, files, author, other_author, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        resp = client.delete(f"/api/papers/{paper_id}", headers=auth_headers(other_author))
        assert resp.status_code == 403

        resp = client.delete(f"/api/papers/{paper_id}", headers=auth_headers(author))
        assert resp.status_code == 200
        assert resp.json() == {"message": "Paper deleted successfully"}
        assert client.get(f"/api/papers/{paper_id}", headers=auth_headers(author)).status_code == 404
        assert list(files.root.iterdir()) == []


    def test_upload_always_served_as_pdf(self, client, reference, author, auth_headers):
        resp = client.post(
            "/api/papers",
            data=_form(reference),
            files=_pdf(name="page.html"),
            headers=auth_headers(author),
        )
        assert resp.status_code == 201
        file_url = resp.json()["fileUrl"]
        assert file_url.endswith(".html")

        served = client.get(file_url)
        assert served.status_code == 200
        assert served.headers["content-type"] == "application/pdf"
        assert served.headers["x-content-type-options"] == "nosniff"

    def test_put_malformed_co_authors(self, client, author, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        resp = client.put(
            f"/api/papers/{paper_id}", json={"co_authors": "{not json"}, headers=auth_headers(author),
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid co_authors"}
        detail = client.get(f"/api/papers/{paper_id}", headers=auth_headers(author)).json()
        assert [c["name"] for c in detail["co_authors"]] == ["Tanvir Ahmed", "Nadia Islam"]


# ── 审核 ──

class TestAdminRoutes:
    def test_approve_then_public_and_count_decrements(self, client, author, admin, auth_headers, submit):
        first = submit(author).json()["id"]
        submit(author, title="Another")
        headers = auth_headers(admin)
        assert client.get("/api/admin/pending-count", headers=headers).json() == {"count": 2}

        resp = client.put(
            f"/api/admin/papers/{first}/status", json={"status": "approved", "admin_notes": "Accepted"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Paper approved successfully"
        assert resp.json()["previous_status"] == "pending"

        public = client.get(f"/api/papers/{first}")
        assert public.status_code == 200
        assert public.json()["admin_notes"] == "Accepted"
        assert client.get("/api/admin/pending-count", headers=headers).json() == {"count": 1}
        assert [p["id"] for p in client.get("/api/papers").json()] == [first]

    def test_non_admin_cannot_moderate(self, client, db, author, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        resp = client.put(
            f"/api/admin/papers/{paper_id}/status", json={"status": "approved"}, headers=auth_headers(author),
        )
        assert resp.status_code == 403
        with db.session() as session:
            assert session.get(Paper, paper_id).status == "pending"
        assert client.get("/api/admin/pending-count", headers=auth_headers(author)).status_code == 403

    def test_invalid_status(self, client, db, author, admin, auth_headers, submit):
        paper_id = submit(author).json()["id"]
        resp = client.put(
            f"/api/admin/papers/{paper_id}/status", json={"status": "published"}, headers=auth_headers(admin),
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid status"}
        with db.session() as session:
            assert session.get(Paper, paper_id).status == "pending"

    def test_demoted_admin_loses_access(self, client, db, admin, auth_headers):
        headers = auth_headers(admin)
        assert client.get("/api/admin/pending-count", headers=headers).status_code == 200
        with db.transaction() as session:
            session.get(User, admin.id).role = "author"
        resp = client.get("/api/admin/pending-count", headers=headers)
        assert resp.status_code == 403
        assert resp.json() == {"error": "Admin access required"}

    def test_unknown_paper(self, client, admin, auth_headers):
        resp = client.put("/api/admin/papers/999/status", json={"status": "rejected"}, headers=auth_headers(admin))
        assert resp.status_code == 404


# ── 公开接口 ──

class TestPublicRoutes:
    def test_search_and_reference(self, client, author, admin, auth_headers, submit):
        old = submit(author, publication_date="2019-01-01", category="Networks").json()["id"]
        new = submit(author, title="Federated Edge Learning").json()["id"]
        for paper_id in (old, new):
            client.put(f"/api/admin/papers/{paper_id}/status", json={"status": "approved"}, headers=auth_headers(admin))

        assert [p["id"] for p in client.get("/api/search").json()] == [new, old]
        assert [p["id"] for p in client.get("/api/search", params={"year": 2019}).json()] == [old]
        assert [p["id"] for p in client.get("/api/search", params={"q": "federated"}).json()] == [new]

        assert [c["name"] for c in client.get("/api/categories").json()] == ["Distributed Systems", "Networks"]
        assert len(client.get("/api/departments").json()) == 2
        assert len(client.get("/api/faculties").json()) == 2

        stats = client.get("/api/stats").json()
        assert stats["papers"] == 2
        assert stats["authors"] == 1

    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Route not found"}

    def test_health_and_metrics(self, client):
        assert client.get("/health").json() == {"status": "ok"}
        detailed = client.get("/health/detailed").json()
        assert detailed["status"] == "ok"
        assert "repo_http_requests_total" in client.get("/metrics").text


def _endpoint_labels():
    return {
        sample.labels["endpoint"]
        for family in metrics.http_requests_total.collect()
        for sample in family.samples
        if "endpoint" in sample.labels
    }


class TestObservability:
    def test_unknown_paths_share_one_label(self, client):
        for i in range(20):
            assert client.get(f"/api/nope-{i}").status_code == 404
        labels = _endpoint_labels()
        assert "unmatched" in labels
        assert not any(label.startswith("/api/nope-") for label in labels)

    def test_route_template_label(self, client):
        client.get("/api/papers/424242")
        client.get("/uploads/paper-1-2.pdf")
        labels = _endpoint_labels()
        assert "/api/papers/{paper_id}" in labels
        assert "/uploads/{file}" in labels
        assert "/api/papers/424242" not in labels

    def test_import_does_not_build_an_app(self):
        import src.api.server as server

        assert not hasattr(server, "app")
