from flask import Blueprint, current_app, jsonify
from pymongo.errors import DuplicateKeyError

from ..accounts import ROLE_ADMIN, ROLE_USER, serialize_account
from ..errors import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..middleware import current_account_id
from ..validation import is_valid_email, normalize_email, validate_profile_updates
from .common import json_body, require_object_id

UPDATABLE_FIELDS = ("username", "phone", "address", "profile_image", "role")


def create_users_blueprint(db, store, guard) -> Blueprint:
    bp = Blueprint("users", __name__)

    def load_account(user_id: str):
        account = store.find_by_id(require_object_id(user_id, "user"))
        if not account:
            raise NotFoundError("User not found")
        return account

    @bp.route("/me", methods=["GET"])
    @guard.protect
    def get_current_user():
        account = store.find_by_id(current_account_id())
        if not account:
            raise NotFoundError("User not found")
        return jsonify({"user": serialize_account(account)})

    @bp.route("", methods=["GET"])
    @bp.route("/", methods=["GET"])
    @guard.protect
    @guard.admin
    def list_users():
        users = [serialize_account(account) for account in store.list_by_role(ROLE_USER)]
        return jsonify({"count": len(users), "users": users})

    @bp.route("/<user_id>", methods=["GET"])
    @guard.protect
    def get_user(user_id: str):
        account = load_account(user_id)
        guard.require_self_or_admin(account["_id"], "access")
        return jsonify({"user": serialize_account(account)})

    @bp.route("/<user_id>", methods=["PUT"])
    @guard.protect
    def update_user(user_id: str):
        account = load_account(user_id)
        requester = guard.require_self_or_admin(account["_id"], "update")
        payload = json_body()

        if "role" in payload and requester.get("role") != ROLE_ADMIN:
            raise AuthorizationError("Only admins can change user roles")
        if "email" in payload:
            raise BadRequestError("Please use the dedicated email update route")
        if "password" in payload:
            raise BadRequestError("Please use the password reset route")

        updates = {field: payload[field] for field in UPDATABLE_FIELDS if field in payload}
        if isinstance(updates.get("username"), str):
            updates["username"] = updates["username"].strip()
        if isinstance(updates.get("address"), str):
            updates["address"] = updates["address"].strip()

        errors = validate_profile_updates(updates)
        if errors:
            raise ValidationError(errors)

        if updates.get("username") and updates["username"] != account.get("username"):
            if store.find_conflicts(username=updates["username"]):
                raise ConflictError("Username already taken")

        try:
            updated_account = store.update(account["_id"], updates)
        except DuplicateKeyError:
            raise ConflictError("Username already taken")

        current_app.logger.info(
            "Account %s updated by %s (%s)",
            account["_id"],
            requester["_id"],
            ", ".join(sorted(updates)) or "no fields",
        )
        return jsonify({"user": serialize_account(updated_account)})

    @bp.route("/<user_id>", methods=["DELETE"])
    @guard.protect
    def delete_user(user_id: str):
        account = load_account(user_id)
        requester = guard.require_self_or_admin(account["_id"], "delete")

        store.delete(account["_id"])
        db.carts.delete_one({"user": account["_id"]})
        db.wishlists.delete_one({"user": account["_id"]})

        current_app.logger.info("Account %s deleted by %s", account["_id"], requester["_id"])
        return jsonify({"message": "User deleted successfully"})

    @bp.route("/email/update/<user_id>", methods=["PUT"])
    @guard.protect
    def update_email(user_id: str):
        target_id = require_object_id(user_id, "user")
        guard.require_self_or_admin(target_id, "update email to")

        payload = json_body()
        new_email = normalize_email(payload.get("newEmail"))
        if not new_email:
            raise BadRequestError("New email is required")
        if not is_valid_email(new_email):
            raise BadRequestError("Invalid email format")
        if store.find_conflicts(email=new_email):
            raise ConflictError("Email already in use")

        if store.find_by_id(target_id) is None:
            raise NotFoundError("User not found")

        try:
            updated_account = store.update(
                target_id, {"email": new_email, "email_verified": False}
            )
        except DuplicateKeyError:
            raise ConflictError("Email already in use")

        return jsonify(
            {
                "message": "Email updated successfully. Verification required.",
                "email": updated_account.get("email"),
            }
        )

    return bp
