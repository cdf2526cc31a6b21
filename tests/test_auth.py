"""
Tests for authentication and user management endpoints.
"""
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from stockroom.core.security import create_access_token
from stockroom.models.user import User


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_success(self, client: TestClient, db: Session):
        response = client.post(
            "/api/auth/register",
            json={"name": "New", "email": "newuser@example.com", "password": "securepassword123", "department": "Bakery"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered"

        user = db.query(User).filter(User.email == "newuser@example.com").first()
        assert user is not None
        assert str(user.id) == data["id"]
        assert user.role.value == "worker"
        assert user.hashed_password != "securepassword123"

    def test_register_duplicate_email(self, client: TestClient, admin_user: User):
        response = client.post(
            "/api/auth/register",
            json={"name": "Dup", "email": admin_user.email, "password": "somepassword123"},
        )

        assert response.status_code == 400
        assert "already registered" in response.json()["message"].lower()

    def test_register_invalid_email(self, client: TestClient):
        response = client.post(
            "/api/auth/register",
            json={"name": "Bad", "email": "not-an-email", "password": "securepassword123"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client: TestClient, admin_user: User):
        response = client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": "adminpassword"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["role"] == "admin"
        assert data["department"] == "Kitchen"
        assert data["id"] == str(admin_user.id)

    def test_login_wrong_password(self, client: TestClient, admin_user: User):
        response = client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": "wrongpassword"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "not_authorized"


class TestMe:

    def test_me(self, client: TestClient, auth_headers: dict):
        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "admin@example.com"
        assert "hashed_password" not in response.json()

    def test_no_token(self, client: TestClient):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, no token"

    def test_expired_token(self, client: TestClient, admin_user: User):
        token = create_access_token(subject=str(admin_user.id), expires_delta=timedelta(seconds=-1))

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_deleted_user(self, client: TestClient, db: Session, worker_user: User, worker_headers: dict):
        db.delete(worker_user)
        db.commit()

        response = client.get("/api/auth/me", headers=worker_headers)

        assert response.status_code == 401
        assert response.json()["message"] == "User not found"


class TestUsers:
    """Tests for /api/users (admin only)."""

    def test_worker_forbidden(self, client: TestClient, worker_headers: dict):
        response = client.get("/api/users", headers=worker_headers)

        assert response.status_code == 403

    def test_admin_crud(self, client: TestClient, auth_headers: dict):
        created = client.post(
            "/api/users",
            json={"name": "Cook", "email": "cook@example.com", "password": "cookpassword"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        user_id = created.json()["id"]

        updated = client.put(
            f"/api/users/{user_id}",
            json={"department": "Bakery", "password": "newpassword"},
            headers=auth_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["department"] == "Bakery"

        login = client.post("/api/auth/login", json={"email": "cook@example.com", "password": "newpassword"})
        assert login.status_code == 200

        listed = client.get("/api/users", headers=auth_headers)
        assert {u["email"] for u in listed.json()} == {"admin@example.com", "cook@example.com"}

        deleted = client.delete(f"/api/users/{user_id}", headers=auth_headers)
        assert deleted.status_code == 200

    def test_cannot_delete_self(self, client: TestClient, admin_user: User, auth_headers: dict):
        response = client.delete(f"/api/users/{admin_user.id}", headers=auth_headers)

        assert response.status_code == 400
