from .helpers import bearer


def account_id(db, email):
    return str(db.users.find_one({"email": email})["_id"])


def test_list_users_returns_only_customers(client, admin_token, register):
    register()
    register(username="bob_2", email="b@x.com")

    response = client.get("/api/users", headers=bearer(admin_token))
    body = response.get_json()

    assert response.status_code == 200
    assert body["count"] == 2
    assert {user["username"] for user in body["users"]} == {"alice1", "bob_2"}
    assert all("password" not in user for user in body["users"])


def test_user_can_read_self_but_not_others(client, user_token, register, db):
    register(username="bob_2", email="b@x.com")

    own = client.get(f"/api/users/{account_id(db, 'a@x.com')}", headers=bearer(user_token))
    other = client.get(f"/api/users/{account_id(db, 'b@x.com')}", headers=bearer(user_token))

    assert own.status_code == 200
    assert own.get_json()["user"]["email"] == "a@x.com"
    assert other.status_code == 403
    assert other.get_json() == {"message": "Not authorized to access this user"}


def test_admin_can_read_any_user(client, admin_token, register):
    alice = register()
    response = client.get(f"/api/users/{alice['id']}", headers=bearer(admin_token))
    assert response.status_code == 200


def test_get_user_with_bad_or_unknown_id(client, user_token):
    assert client.get("/api/users/not-an-id", headers=bearer(user_token)).status_code == 400
    missing = client.get("/api/users/64b7f0c2a1b2c3d4e5f60718", headers=bearer(user_token))
    assert missing.status_code == 404
    assert missing.get_json() == {"message": "User not found"}


def test_update_own_profile(client, user_token, db):
    user_id = account_id(db, "a@x.com")
    response = client.put(
        f"/api/users/{user_id}",
        json={"phone": "0123456789", "address": " 1 Main St ", "username": "alice_new"},
        headers=bearer(user_token),
    )

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["phone"] == "0123456789"
    assert user["address"] == "1 Main St"
    assert user["username"] == "alice_new"


def test_update_rejects_invalid_fields(client, user_token, db):
    user_id = account_id(db, "a@x.com")
    response = client.put(
        f"/api/users/{user_id}",
        json={"phone": "12345", "address": "x" * 201},
        headers=bearer(user_token),
    )
    assert response.status_code == 400
    assert response.get_json()["errors"] == [
        "12345 is not a valid phone number!",
        "Address cannot exceed 200 characters",
    ]


def test_update_refuses_email_password_and_role_changes(client, user_token, db):
    user_id = account_id(db, "a@x.com")

    email = client.put(f"/api/users/{user_id}", json={"email": "z@x.com"}, headers=bearer(user_token))
    password = client.put(
        f"/api/users/{user_id}", json={"password": "whatever"}, headers=bearer(user_token)
    )
    role = client.put(f"/api/users/{user_id}", json={"role": "admin"}, headers=bearer(user_token))

    assert email.status_code == 400
    assert email.get_json() == {"message": "Please use the dedicated email update route"}
    assert password.status_code == 400
    assert password.get_json() == {"message": "Please use the password reset route"}
    assert role.status_code == 403
    assert role.get_json() == {"message": "Only admins can change user roles"}
    assert db.users.find_one({"email": "a@x.com"})["role"] == "user"


def test_update_username_conflict(client, user_token, register, db):
    register(username="bob_2", email="b@x.com")
    response = client.put(
        f"/api/users/{account_id(db, 'a@x.com')}",
        json={"username": "bob_2"},
        headers=bearer(user_token),
    )
    assert response.status_code == 409
    assert response.get_json() == {"message": "Username already taken"}


def test_admin_can_change_roles(client, admin_token, register):
    alice = register()
    response = client.put(
        f"/api/users/{alice['id']}", json={"role": "admin"}, headers=bearer(admin_token)
    )
    assert response.status_code == 200
    assert response.get_json()["user"]["role"] == "admin"


def test_user_cannot_update_someone_else(client, user_token, register):
    bob = register(username="bob_2", email="b@x.com")
    response = client.put(f"/api/users/{bob['id']}", json={"phone": ""}, headers=bearer(user_token))
    assert response.status_code == 403
    assert response.get_json() == {"message": "Not authorized to update this user"}


def test_delete_self_removes_account_and_baskets(client, user_token, db):
    user_id = account_id(db, "a@x.com")
    client.get("/api/cart", headers=bearer(user_token))
    client.get("/api/wishlist", headers=bearer(user_token))

    response = client.delete(f"/api/users/{user_id}", headers=bearer(user_token))

    assert response.status_code == 200
    assert response.get_json() == {"message": "User deleted successfully"}
    assert db.users.count_documents({"email": "a@x.com"}) == 0
    assert db.carts.count_documents({}) == 0
    assert db.wishlists.count_documents({}) == 0
    assert client.get("/api/users/me", headers=bearer(user_token)).status_code == 401


def test_user_cannot_delete_someone_else(client, user_token, register):
    bob = register(username="bob_2", email="b@x.com")
    response = client.delete(f"/api/users/{bob['id']}", headers=bearer(user_token))
    assert response.status_code == 403


def test_email_update_resets_verification(client, user_token, db):
    user_id = account_id(db, "a@x.com")
    db.users.update_one({"email": "a@x.com"}, {"$set": {"email_verified": True}})

    response = client.put(
        f"/api/users/email/update/{user_id}",
        json={"newEmail": "New@X.com"},
        headers=bearer(user_token),
    )

    assert response.status_code == 200
    assert response.get_json() == {
        "message": "Email updated successfully. Verification required.",
        "email": "new@x.com",
    }
    stored = db.users.find_one({"_id": db.users.find_one({"email": "new@x.com"})["_id"]})
    assert stored["email_verified"] is False

    login = client.post("/api/auth/login", json={"email": "new@x.com", "password": "secret1"})
    assert login.status_code == 200


def test_email_update_validation(client, user_token, register, db):
    register(username="bob_2", email="b@x.com")
    url = f"/api/users/email/update/{account_id(db, 'a@x.com')}"

    missing = client.put(url, json={}, headers=bearer(user_token))
    invalid = client.put(url, json={"newEmail": "nope"}, headers=bearer(user_token))
    taken = client.put(url, json={"newEmail": "b@x.com"}, headers=bearer(user_token))

    assert missing.status_code == 400
    assert missing.get_json() == {"message": "New email is required"}
    assert invalid.status_code == 400
    assert invalid.get_json() == {"message": "Invalid email format"}
    assert taken.status_code == 409
    assert taken.get_json() == {"message": "Email already in use"}


def test_email_update_for_another_user_requires_admin(client, user_token, admin_token, register):
    bob = register(username="bob_2", email="b@x.com")
    url = f"/api/users/email/update/{bob['id']}"

    denied = client.put(url, json={"newEmail": "bob@x.com"}, headers=bearer(user_token))
    allowed = client.put(url, json={"newEmail": "bob@x.com"}, headers=bearer(admin_token))

    assert denied.status_code == 403
    assert denied.get_json() == {"message": "Not authorized to update email to this user"}
    assert allowed.status_code == 200
