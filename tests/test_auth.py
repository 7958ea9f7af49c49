"""Tests for staff login and token checks."""

from datetime import timedelta

from autoshop.models import StaffUser
from autoshop.security_utils import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestSecurityUtils:
    def test_password_hash_round_trip(self) -> None:
        hashed = hash_password("correct-horse-battery")
        assert hashed != "correct-horse-battery"
        assert verify_password("correct-horse-battery", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_against_garbage_hash(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_token_claims(self) -> None:
        claims = decode_access_token(create_access_token({"sub": "7", "role": "admin"}))
        assert claims["sub"] == "7"
        assert claims["role"] == "admin"

    def test_expired_token(self) -> None:
        token = create_access_token({"sub": "7"}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None


class TestLogin:
    def test_login_success(self, client, staff_user, db_session) -> None:
        response = client.post(
            "/auth/login", json={"email": "Admin@Autoshop.test", "password": "correct-horse-battery"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        db_session.refresh(staff_user)
        assert staff_user.last_login_at is not None

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == "admin@autoshop.test"

    def test_wrong_password(self, client, staff_user) -> None:
        response = client.post(
            "/auth/login", json={"email": "admin@autoshop.test", "password": "nope"}
        )
        assert response.status_code == 401

    def test_unknown_email(self, client) -> None:
        response = client.post(
            "/auth/login", json={"email": "nobody@autoshop.test", "password": "whatever"}
        )
        assert response.status_code == 401

    def test_non_admin_refused(self, client, db_session) -> None:
        db_session.add(
            StaffUser(
                email="tech@autoshop.test",
                full_name="Shop Tech",
                password_hash=hash_password("wrench-time"),
                role="user",
            )
        )
        db_session.commit()

        response = client.post("/auth/login", json={"email": "tech@autoshop.test", "password": "wrench-time"})
        assert response.status_code == 403

    def test_disabled_account_token_rejected(self, client, staff_user, auth_headers, db_session) -> None:
        staff_user.is_active = False
        db_session.commit()

        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 401

    def test_non_admin_token_forbidden(self, client, db_session) -> None:
        tech = StaffUser(
            email="tech2@autoshop.test",
            password_hash=hash_password("wrench-time"),
            role="user",
        )
        db_session.add(tech)
        db_session.commit()
        token = create_access_token({"sub": str(tech.id), "role": "user"})

        response = client.get("/admin/appointments", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403
