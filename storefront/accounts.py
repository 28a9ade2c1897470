"""Account persistence on top of the ``users`` collection."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from .security import utcnow
from .validation import parse_object_id

ROLE_USER = "user"
ROLE_ADMIN = "admin"

# Fields that never leave the store unless explicitly asked for.
PRIVATE_FIELDS = ("password", "reset_password_token", "reset_password_expires")
PUBLIC_PROJECTION = {field: 0 for field in PRIVATE_FIELDS}


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else None


def serialize_account(account_document) -> Dict[str, object]:
    if not account_document:
        return {}

    return {
        "id": str(account_document.get("_id")),
        "username": account_document.get("username", "") or "",
        "email": account_document.get("email", "") or "",
        "role": account_document.get("role") or ROLE_USER,
        "phone": account_document.get("phone", "") or "",
        "address": account_document.get("address", "") or "",
        "profile_image": account_document.get("profile_image", "") or "",
        "email_verified": bool(account_document.get("email_verified")),
        "created_at": _isoformat(account_document.get("created_at")),
        "updated_at": _isoformat(account_document.get("updated_at")),
    }


class AccountStore:
    """Narrow data-access surface used by the auth core and the user routes."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def ensure_indexes(self) -> None:
        self._collection.create_index([("email", ASCENDING)], unique=True)
        self._collection.create_index([("username", ASCENDING)], unique=True)
        self._collection.create_index([("reset_password_token", ASCENDING)])

    def find_by_id(self, account_id, projection=None):
        object_id = parse_object_id(account_id)
        if object_id is None:
            return None
        return self._collection.find_one(
            {"_id": object_id},
            projection if projection is not None else PUBLIC_PROJECTION,
        )

    def find_by_email(self, email: str, include_password: bool = False):
        projection = None if include_password else PUBLIC_PROJECTION
        return self._collection.find_one({"email": email}, projection)

    def find_conflicts(self, email: Optional[str] = None, username: Optional[str] = None) -> List[Dict]:
        clauses = []
        if email:
            clauses.append({"email": email})
        if username:
            clauses.append({"username": username})
        if not clauses:
            return []
        return list(
            self._collection.find({"$or": clauses}, {"email": 1, "username": 1}).limit(2)
        )

    def insert(self, document: Dict) -> ObjectId:
        timestamp = utcnow()
        document.setdefault("created_at", timestamp)
        document.setdefault("updated_at", timestamp)
        return self._collection.insert_one(document).inserted_id

    def update(self, account_id, set_fields: Optional[Dict] = None, unset_fields=None):
        object_id = parse_object_id(account_id)
        if object_id is None:
            return None
        update_query: Dict[str, Dict] = {"$set": {"updated_at": utcnow()}}
        if set_fields:
            update_query["$set"].update(set_fields)
        if unset_fields:
            update_query["$unset"] = {field: "" for field in unset_fields}
        return self._collection.find_one_and_update(
            {"_id": object_id},
            update_query,
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, account_id) -> bool:
        object_id = parse_object_id(account_id)
        if object_id is None:
            return False
        return self._collection.delete_one({"_id": object_id}).deleted_count > 0

    def list_by_role(self, role: str) -> List[Dict]:
        return list(
            self._collection.find({"role": role}, PUBLIC_PROJECTION).sort(
                "created_at", DESCENDING
            )
        )

    def consume_reset_token(self, token_hash: str, password_hash: str, now: datetime):
        """Swap in a new password if the reset token matches and is unexpired.

        Matching and clearing happen in one atomic update, so a token cannot
        be spent twice.
        """
        return self._collection.find_one_and_update(
            {
                "reset_password_token": token_hash,
                "reset_password_expires": {"$gt": now},
            },
            {
                "$set": {
                    "password": password_hash,
                    "password_changed_at": now,
                    "updated_at": now,
                },
                "$unset": {"reset_password_token": "", "reset_password_expires": ""},
            },
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
