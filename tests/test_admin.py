"""
Tests for the Admin Endpoints

- POST  /api/v1/admin/books
- POST  /api/v1/admin/libraries
- PATCH /api/v1/admin/users/{user_id}/role
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from tometracker.models import Book, LedgerEntry, Library, User

BOOK = {
    "title": "A Wizard of Earthsea",
    "author": "Ursula K. Le Guin",
    "isbn": "978-0547773742",
    "edition": "1st",
}


class TestCreateBook:
    def test_create_book_with_first_copy(self, client: TestClient, admin_headers, sample_library):
        response = client.post("/api/v1/admin/books", json={"book": BOOK}, headers=admin_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["book"]["title"] == BOOK["title"]
        assert data["book"]["isbn"] == "9780547773742"
        assert data["ledger_entry"] == {
            "book_id": data["book"]["id"],
            "library_id": sample_library.id,
            "total_copies": 1,
            "available_copies": 1,
            "borrowed_copies": 0,
        }

    def test_create_book_at_given_library(
        self, client: TestClient, admin_headers, sample_library, second_library
    ):
        response = client.post(
            "/api/v1/admin/books",
            json={"book": BOOK, "library_id": second_library.id},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["ledger_entry"]["library_id"] == second_library.id

    def test_create_book_unknown_library(self, client: TestClient, admin_headers, db_session: Session, sample_library):
        response = client.post(
            "/api/v1/admin/books",
            json={"book": BOOK, "library_id": sample_library.id + 50},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        # The book was rolled back with the failed copy
        assert db_session.execute(select(Book)).scalars().all() == []

    def test_create_book_without_libraries(self, client: TestClient, admin_headers):
        response = client.post("/api/v1/admin/books", json={"book": BOOK}, headers=admin_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_create_book_duplicate_isbn(self, client: TestClient, admin_headers, sample_library):
        client.post("/api/v1/admin/books", json={"book": BOOK}, headers=admin_headers)

        response = client.post("/api/v1/admin/books", json={"book": BOOK}, headers=admin_headers)

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_create_book_invalid_isbn(self, client: TestClient, admin_headers, sample_library):
        response = client.post(
            "/api/v1/admin/books",
            json={"book": {**BOOK, "isbn": "12345"}},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.parametrize("headers_fixture", ["auth_headers", "staff_headers"])
    def test_create_book_requires_admin(self, client: TestClient, request, headers_fixture, sample_library):
        headers = request.getfixturevalue(headers_fixture)

        response = client.post("/api/v1/admin/books", json={"book": BOOK}, headers=headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_book_requires_credentials(self, client: TestClient, sample_library):
        response = client.post("/api/v1/admin/books", json={"book": BOOK})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestCreateLibrary:
    def test_create_library_stocks_catalogue(self, client: TestClient, admin_headers, db_session: Session):
        db_session.add_all([Book(title="Catalogue One"), Book(title="Catalogue Two")])
        db_session.commit()

        response = client.post(
            "/api/v1/admin/libraries",
            json={"name": "Riverside Branch", "city": "Coimbra"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        library_id = response.json()["id"]

        # Background tasks have run by the time TestClient returns
        entries = db_session.execute(
            select(LedgerEntry).where(LedgerEntry.library_id == library_id)
        ).scalars().all()
        assert len(entries) == 2
        assert all(entry.available_copies == entry.total_copies >= 1 for entry in entries)

    def test_create_library_duplicate_name(self, client: TestClient, admin_headers, sample_library: Library):
        response = client.post(
            "/api/v1/admin/libraries",
            json={"name": sample_library.name},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_create_library_requires_admin(self, client: TestClient, staff_headers):
        response = client.post(
            "/api/v1/admin/libraries",
            json={"name": "Staff Branch"},
            headers=staff_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Role mismatch (staff != admin)"


class TestUpdateRole:
    def test_promote_user(self, client: TestClient, admin_headers, db_session: Session, sample_user: User):
        response = client.patch(
            f"/api/v1/admin/users/{sample_user.id}/role",
            json={"role": "staff"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["role"] == "staff"
        db_session.refresh(sample_user)
        assert sample_user.role == "staff"

    def test_unknown_user(self, client: TestClient, admin_headers):
        response = client.patch(
            "/api/v1/admin/users/999/role",
            json={"role": "staff"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_role(self, client: TestClient, admin_headers, sample_user: User):
        response = client.patch(
            f"/api/v1/admin/users/{sample_user.id}/role",
            json={"role": "librarian"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_requires_admin(self, client: TestClient, staff_headers, sample_user: User):
        response = client.patch(
            f"/api/v1/admin/users/{sample_user.id}/role",
            json={"role": "admin"},
            headers=staff_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
