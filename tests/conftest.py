import mongomock
import pytest

from storefront import create_app
from storefront.config import Settings


class RecordingMailer:
    """Stands in for the Resend mailer and keeps every raw token it was given."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send_password_reset_email(self, recipient_email, raw_token):
        self.sent.append((recipient_email, raw_token))
        if self.fail_with:
            return False, self.fail_with
        return True, None


@pytest.fixture()
def settings():
    return Settings(
        jwt_secret_key="test-secret",
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        trusted_proxy_hops=0,
    )


@pytest.fixture()
def db():
    return mongomock.MongoClient().storefront


@pytest.fixture()
def mailer():
    return RecordingMailer()


@pytest.fixture()
def app(settings, db, mailer):
    app = create_app(settings, database=db, mailer=mailer)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def register(client):
    def _register(username="alice1", email="a@x.com", password="secret1"):
        response = client.post(
            "/api/auth/signup",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.get_json()
        return response.get_json()

    return _register


@pytest.fixture()
def login(client):
    def _login(email="a@x.com", password="secret1"):
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.get_json()
        return response.get_json()["token"]

    return _login


@pytest.fixture()
def user_token(register, login):
    register()
    return login()


@pytest.fixture()
def admin_token(register, login, db):
    register(username="admin_user", email="admin@x.com", password="adminpass")
    db.users.update_one({"email": "admin@x.com"}, {"$set": {"role": "admin"}})
    return login(email="admin@x.com", password="adminpass")
