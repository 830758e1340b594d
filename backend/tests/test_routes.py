"""
BookBrief Backend — HTTP Route Tests
======================================

End-to-end through the ASGI app: real routing, validation, exception
handlers, SQLite database and pypdf. The summarizer runs in local mode
(no GEMINI_API_KEY in the test environment).

What we test:
    ✅ Auth: signup/login/me, duplicate email, bad input, missing token
    ✅ Upload: no PDF, non-PDF, missing title, unreadable PDF still 201
    ✅ Ownership: other users' books are 404
    ✅ Summary edit / notes / delete / regenerate error codes
"""

from typing import Dict

import pytest
from httpx import AsyncClient

from app.services.book_service import FALLBACK_NOTICE


async def signup(client: AsyncClient, email: str) -> Dict[str, str]:
    response = await client.post(
        "/auth/signup", json={"email": email, "password": "secret123", "name": "Tester"}
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


async def upload(client: AsyncClient, headers, pdf: bytes = None, **fields):
    data = {"title": "The Book", **fields}
    files = {"pdf": ("book.pdf", pdf, "application/pdf")} if pdf is not None else None
    return await client.post("/books/upload", data=data, files=files, headers=headers)


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_local_summarizer(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["summarizer"] == "local"
        assert body["database"] == "connected"
        assert body["status"] == "healthy"
        assert "X-Request-ID" in response.headers


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_signup_login_me(self, test_client):
        await signup(test_client, "new@example.com")

        login = await test_client.post(
            "/auth/login", json={"email": "NEW@example.com", "password": "secret123"}
        )
        assert login.status_code == 200
        token = login.json()["token"]

        me = await test_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "new@example.com"
        assert "password_hash" not in me.json()["user"]

    @pytest.mark.asyncio
    async def test_duplicate_signup_is_409(self, test_client):
        await signup(test_client, "dup@example.com")
        response = await test_client.post(
            "/auth/signup", json={"email": "dup@example.com", "password": "secret123"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_short_password_is_400(self, test_client):
        response = await test_client.post(
            "/auth/signup", json={"email": "short@example.com", "password": "123"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, test_client):
        await signup(test_client, "pw@example.com")
        response = await test_client.post(
            "/auth/login", json={"email": "pw@example.com", "password": "not-it"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer garbage"}])
    async def test_protected_route_requires_valid_token(self, test_client, headers):
        response = await test_client.get("/books", headers=headers)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_without_pdf(self, test_client):
        headers = await signup(test_client, "a@example.com")

        response = await upload(test_client, headers, author="  ", description="About things")

        assert response.status_code == 201
        body = response.json()
        assert body["book"]["status"] == "uploaded"
        assert body["book"]["has_document"] is False
        assert body["book"]["author"] is None
        assert body["summary"] is None
        assert body["degraded"] is False

    @pytest.mark.asyncio
    async def test_missing_title_is_400(self, test_client):
        headers = await signup(test_client, "a@example.com")

        response = await test_client.post(
            "/books/upload", data={"title": "   "}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "title"

    @pytest.mark.asyncio
    async def test_non_pdf_is_400(self, test_client):
        headers = await signup(test_client, "a@example.com")

        response = await test_client.post(
            "/books/upload",
            data={"title": "Pictures"},
            files={"pdf": ("cover.png", b"\x89PNG\r\n", "image/png")},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only PDF files are allowed"

    @pytest.mark.asyncio
    async def test_unreadable_pdf_still_creates_book(self, test_client, blank_pdf_bytes):
        headers = await signup(test_client, "a@example.com")

        response = await upload(test_client, headers, pdf=blank_pdf_bytes, description="Scanned pages.")

        assert response.status_code == 201
        body = response.json()
        assert body["book"]["status"] == "failed"
        assert body["book"]["has_document"] is True
        assert body["degraded"] is True
        assert body["summary"]["content"] == f"{FALLBACK_NOTICE} Scanned pages."


class TestOwnership:
    @pytest.mark.asyncio
    async def test_other_users_book_is_404(self, test_client):
        owner = await signup(test_client, "owner@example.com")
        intruder = await signup(test_client, "intruder@example.com")
        book_id = (await upload(test_client, owner)).json()["book"]["id"]

        for method, path in [
            ("GET", f"/books/{book_id}"),
            ("DELETE", f"/books/{book_id}"),
            ("GET", f"/books/{book_id}/summary"),
            ("POST", f"/books/{book_id}/summary/regenerate"),
        ]:
            response = await test_client.request(method, path, headers=intruder)
            assert response.status_code == 404, (method, path)

        listing = await test_client.get("/books", headers=intruder)
        assert listing.json()["books"] == []


class TestSummaryLifecycle:
    @pytest.mark.asyncio
    async def test_edit_notes_and_delete(self, test_client, blank_pdf_bytes):
        headers = await signup(test_client, "a@example.com")
        book_id = (await upload(test_client, headers, pdf=blank_pdf_bytes)).json()["book"]["id"]

        edited = await test_client.put(
            f"/books/{book_id}/summary",
            json={"content": "My own summary of the book."},
            headers=headers,
        )
        assert edited.status_code == 200
        summary = edited.json()
        assert summary["highlights"] == "My own summary of the book."

        summaries = await test_client.get("/summaries", headers=headers)
        assert [s["book"]["id"] for s in summaries.json()] == [book_id]

        note = await test_client.post(
            f"/summaries/{summary['id']}/notes", json={"content": "Good point"}, headers=headers
        )
        assert note.status_code == 201
        assert note.json()["note"]["user"]["email"] == "a@example.com"

        blank_note = await test_client.post(
            f"/summaries/{summary['id']}/notes", json={"content": "   "}, headers=headers
        )
        assert blank_note.status_code == 400

        notes = await test_client.get(f"/summaries/{summary['id']}/notes", headers=headers)
        assert len(notes.json()["notes"]) == 1

        deleted = await test_client.delete(f"/books/{book_id}/summary", headers=headers)
        assert deleted.status_code == 204

        book = await test_client.get(f"/books/{book_id}", headers=headers)
        assert book.json()["status"] == "uploaded"
        assert book.json()["summary"] is None

    @pytest.mark.asyncio
    async def test_regenerate_without_document_is_500_no_document(self, test_client):
        headers = await signup(test_client, "a@example.com")
        book_id = (await upload(test_client, headers)).json()["book"]["id"]

        response = await test_client.post(f"/books/{book_id}/summary/regenerate", headers=headers)

        assert response.status_code == 500
        assert response.json()["error"] == "no_document"
        book = await test_client.get(f"/books/{book_id}", headers=headers)
        assert book.json()["status"] == "uploaded"

    @pytest.mark.asyncio
    async def test_regenerate_unreadable_pdf_is_500_extraction_failed(self, test_client, blank_pdf_bytes):
        headers = await signup(test_client, "a@example.com")
        book_id = (await upload(test_client, headers, pdf=blank_pdf_bytes)).json()["book"]["id"]

        response = await test_client.post(f"/books/{book_id}/summary/regenerate", headers=headers)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "extraction_failed"
        assert body["details"]["kind"] == "empty_document"

    @pytest.mark.asyncio
    async def test_delete_book(self, test_client, blank_pdf_bytes):
        headers = await signup(test_client, "a@example.com")
        book_id = (await upload(test_client, headers, pdf=blank_pdf_bytes)).json()["book"]["id"]

        response = await test_client.delete(f"/books/{book_id}", headers=headers)
        assert response.status_code == 204

        assert (await test_client.get(f"/books/{book_id}", headers=headers)).status_code == 404
