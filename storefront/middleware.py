"""Request guards: bearer-token authentication and role checks."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import current_app, g, request

from .accounts import ROLE_ADMIN, AccountStore
from .errors import AuthenticationError, AuthorizationError, NotFoundError
from .security import TokenCodec, TokenRejected, to_epoch_seconds

NO_TOKEN = "Not authorized, no token provided"
INVALID_TOKEN = "Not authorized, invalid token"
STALE_TOKEN = "Password changed, please login again"


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    if not header_value:
        return None
    scheme, _, token = header_value.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def current_account_id() -> Optional[str]:
    return g.get("account_id")


class AccessGuard:
    """Resolves the caller's identity and enforces role gates.

    Every check goes back to the store: password changes and role changes
    take effect on the very next request.
    """

    def __init__(self, store: AccountStore, codec: TokenCodec) -> None:
        self._store = store
        self._codec = codec

    def authenticate(self) -> str:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise AuthenticationError(NO_TOKEN)

        try:
            claims = self._codec.verify(token)
        except TokenRejected as exc:
            current_app.logger.info("Rejected bearer token: %s", exc.reason)
            raise AuthenticationError(INVALID_TOKEN) from exc

        account = self._store.find_by_id(
            claims.account_id, projection={"password_changed_at": 1}
        )
        if account is None:
            raise AuthenticationError(INVALID_TOKEN)

        changed_at = account.get("password_changed_at")
        if changed_at is not None and to_epoch_seconds(changed_at) > claims.issued_at:
            raise AuthenticationError(STALE_TOKEN)

        g.account_id = claims.account_id
        return claims.account_id

    def protect(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            self.authenticate()
            return view(*args, **kwargs)

        return wrapper

    def load_requester(self):
        account = self._store.find_by_id(current_account_id(), projection={"role": 1})
        if account is None:
            raise NotFoundError("User not found")
        return account

    def admin(self, view):
        """Admin-only gate; expects ``protect`` to have run first."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            requester = self.load_requester()
            if requester.get("role") != ROLE_ADMIN:
                raise AuthorizationError("Admin privileges required")
            return view(*args, **kwargs)

        return wrapper

    def is_admin(self) -> bool:
        return self.load_requester().get("role") == ROLE_ADMIN

    def require_self_or_admin(self, target_id: str, action: str):
        requester = self.load_requester()
        if requester.get("role") != ROLE_ADMIN and str(requester["_id"]) != str(target_id):
            raise AuthorizationError(f"Not authorized to {action} this user")
        return requester
