from datetime import datetime, timezone

import pytest
from bson import ObjectId
from flask import g
from flask_jwt_extended import decode_token

from storefront.errors import AuthorizationError, NotFoundError
from storefront.middleware import extract_bearer_token

from .helpers import bearer


def issued_at(app, token):
    with app.app_context():
        return decode_token(token)["iat"]


def as_naive_utc(epoch_seconds):
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).replace(tzinfo=None)


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Basic abc", None),
        ("Bearer abc.def", "abc.def"),
        ("bearer   abc.def ", "abc.def"),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_missing_token_is_rejected(client):
    response = client.get("/api/users/me")
    assert response.status_code == 401
    assert response.get_json() == {"message": "Not authorized, no token provided"}


def test_non_bearer_scheme_is_rejected(client):
    response = client.get("/api/users/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert response.status_code == 401
    assert response.get_json() == {"message": "Not authorized, no token provided"}


def test_garbage_token_is_rejected(client):
    response = client.get("/api/users/me", headers=bearer("not-a-jwt"))
    assert response.status_code == 401
    assert response.get_json() == {"message": "Not authorized, invalid token"}


def test_valid_token_resolves_account(client, user_token):
    response = client.get("/api/users/me", headers=bearer(user_token))
    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["username"] == "alice1"
    assert "password" not in user


def test_token_for_deleted_account_is_rejected(client, user_token, db):
    db.users.delete_many({})
    response = client.get("/api/users/me", headers=bearer(user_token))
    assert response.status_code == 401
    assert response.get_json() == {"message": "Not authorized, invalid token"}


def test_token_issued_before_password_change_is_rejected(app, client, user_token, db):
    iat = issued_at(app, user_token)
    db.users.update_one(
        {"email": "a@x.com"}, {"$set": {"password_changed_at": as_naive_utc(iat + 5)}}
    )

    response = client.get("/api/users/me", headers=bearer(user_token))
    assert response.status_code == 401
    assert response.get_json() == {"message": "Password changed, please login again"}


def test_token_issued_in_the_same_second_as_password_change_is_accepted(
    app, client, user_token, db
):
    iat = issued_at(app, user_token)
    db.users.update_one({"email": "a@x.com"}, {"$set": {"password_changed_at": as_naive_utc(iat)}})

    response = client.get("/api/users/me", headers=bearer(user_token))
    assert response.status_code == 200


def test_password_reset_invalidates_older_tokens(app, client, user_token, mailer, db):
    client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    raw_token = mailer.sent[-1][1]
    client.post(f"/api/auth/reset-password/{raw_token}", json={"password": "newpass1"})

    # Pin the change strictly after the old token so the check does not hinge on clock ticks.
    iat = issued_at(app, user_token)
    db.users.update_one(
        {"email": "a@x.com"}, {"$set": {"password_changed_at": as_naive_utc(iat + 1)}}
    )

    stale = client.get("/api/users/me", headers=bearer(user_token))
    assert stale.status_code == 401
    assert stale.get_json() == {"message": "Password changed, please login again"}


def test_admin_gate_rejects_regular_users(client, user_token):
    response = client.get("/api/users", headers=bearer(user_token))
    assert response.status_code == 403
    assert response.get_json() == {"message": "Admin privileges required"}


def test_admin_gate_allows_admins(client, admin_token):
    response = client.get("/api/users", headers=bearer(admin_token))
    assert response.status_code == 200


def test_admin_gate_reloads_role_on_every_request(client, admin_token, db):
    assert client.get("/api/users", headers=bearer(admin_token)).status_code == 200

    db.users.update_one({"email": "admin@x.com"}, {"$set": {"role": "user"}})
    response = client.get("/api/users", headers=bearer(admin_token))
    assert response.status_code == 403


def test_admin_gate_reports_missing_account(app):
    guard = app.extensions["storefront"]["guard"]
    view = guard.admin(lambda: "ok")

    with app.test_request_context():
        g.account_id = str(ObjectId())
        with pytest.raises(NotFoundError) as excinfo:
            view()
    assert excinfo.value.message == "User not found"


def test_self_or_admin_check(app, register, db):
    alice = register()
    bob = register(username="bob_2", email="b@x.com")
    guard = app.extensions["storefront"]["guard"]

    with app.test_request_context():
        g.account_id = alice["id"]
        assert str(guard.require_self_or_admin(alice["id"], "access")["_id"]) == alice["id"]
        with pytest.raises(AuthorizationError) as excinfo:
            guard.require_self_or_admin(bob["id"], "access")
        assert excinfo.value.message == "Not authorized to access this user"

        db.users.update_one({"email": "a@x.com"}, {"$set": {"role": "admin"}})
        assert guard.require_self_or_admin(bob["id"], "access")
