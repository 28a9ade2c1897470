"""Signup, login and password-reset workflows."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from pymongo.errors import DuplicateKeyError

from .accounts import ROLE_USER, AccountStore, serialize_account
from .errors import AuthenticationError, ConflictError, ServerError, ValidationError
from .security import PasswordHasher, ResetTokenGenerator, TokenCodec, utcnow
from .validation import (
    email_errors,
    normalize_email,
    password_errors,
    validate_login,
    validate_signup,
)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_RESET_TOKEN = "Invalid or expired token"
FORGOT_PASSWORD_MESSAGE = "Password reset email sent if account exists"
EMAIL_TAKEN = "Email already registered"
USERNAME_TAKEN = "Username already taken"


class AuthService:
    """Account workflows that never reveal which credential check failed."""

    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        reset_tokens: ResetTokenGenerator,
        mailer,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._codec = codec
        self._reset_tokens = reset_tokens
        self._mailer = mailer
        self._logger = logger or logging.getLogger(__name__)

    def _conflict_for(self, email: str, username: str) -> Optional[ConflictError]:
        existing = self._store.find_conflicts(email=email, username=username)
        if any(document.get("email") == email for document in existing):
            return ConflictError(EMAIL_TAKEN)
        if existing:
            return ConflictError(USERNAME_TAKEN)
        return None

    def _hash_password(self, plaintext: str) -> str:
        try:
            return self._hasher.hash(plaintext)
        except (ValueError, TypeError) as exc:
            raise ServerError(f"Password hashing failed: {exc}") from exc

    def signup(self, payload: Dict) -> Dict[str, object]:
        errors = validate_signup(payload)
        if errors:
            raise ValidationError(errors)

        username = payload["username"].strip()
        email = normalize_email(payload["email"])

        conflict = self._conflict_for(email, username)
        if conflict:
            raise conflict

        account_document = {
            "username": username,
            "email": email,
            "password": self._hash_password(payload["password"]),
            "role": ROLE_USER,
            "phone": "",
            "address": "",
            "profile_image": "",
            "email_verified": False,
        }
        try:
            account_id = self._store.insert(account_document)
        except DuplicateKeyError:
            # Lost a race with a concurrent signup; the unique index decided.
            raise self._conflict_for(email, username) or ConflictError(EMAIL_TAKEN)

        self._logger.info("Registered account %s", account_id)
        return serialize_account(self._store.find_by_id(account_id))

    def login(self, payload: Dict) -> Dict[str, object]:
        errors = validate_login(payload)
        if errors:
            raise ValidationError(errors)

        email = normalize_email(payload["email"])
        account = self._store.find_by_email(email, include_password=True)
        if account is None:
            self._hasher.verify_dummy(payload["password"])
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not self._hasher.verify(payload["password"], account.get("password")):
            raise AuthenticationError(INVALID_CREDENTIALS)

        token = self._codec.issue(account["_id"])
        self._logger.info("Account %s signed in", account["_id"])
        profile = serialize_account(account)
        profile["token"] = token
        return profile

    def forgot_password(self, payload: Dict) -> str:
        errors = email_errors(payload.get("email"))
        if errors:
            raise ValidationError(errors)
        email = normalize_email(payload["email"])

        account = self._store.find_by_email(email)
        if account is None:
            return FORGOT_PASSWORD_MESSAGE

        raw_token, token_hash, expires_at = self._reset_tokens.generate()
        self._store.update(
            account["_id"],
            {"reset_password_token": token_hash, "reset_password_expires": expires_at},
        )

        try:
            sent, error_details = self._mailer.send_password_reset_email(email, raw_token)
        except Exception:
            self._logger.exception(
                "Password reset email delivery raised for account %s", account["_id"]
            )
            return FORGOT_PASSWORD_MESSAGE
        if not sent:
            self._logger.error(
                "Password reset email delivery failed for account %s: %s",
                account["_id"],
                error_details or "Unknown delivery error",
            )
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, raw_token: str, payload: Dict) -> Dict[str, object]:
        errors = password_errors(payload.get("password"))
        if errors:
            raise ValidationError(errors)
        if not raw_token:
            raise AuthenticationError(INVALID_RESET_TOKEN)

        token_hash = self._reset_tokens.digest(raw_token)
        password_hash = self._hash_password(payload["password"])
        account = self._store.consume_reset_token(token_hash, password_hash, utcnow())
        if account is None:
            raise AuthenticationError(INVALID_RESET_TOKEN)

        self._logger.info("Password reset for account %s", account["_id"])
        return serialize_account(account)

