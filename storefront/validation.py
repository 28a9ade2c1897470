import math
import re
import unicodedata
from typing import Dict, List, Optional
from uuid import uuid4

from bson import ObjectId
from bson.errors import InvalidId

email_regex = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
username_regex = re.compile(r"^[A-Za-z0-9_]+$")
phone_regex = re.compile(r"^\d{10}$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
ADDRESS_MAX_LENGTH = 200


def normalize_email(value: Optional[str]) -> str:
    return str(value or "").strip().lower()


def is_valid_email(value: Optional[str]) -> bool:
    normalized = normalize_email(value)
    return bool(normalized and email_regex.match(normalized))


def parse_object_id(value) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value or "").strip())
    except (InvalidId, TypeError):
        return None


def safe_float(value, default=None):
    if isinstance(value, bool):
        return default
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return default
    if math.isfinite(numeric):
        return numeric
    return default


def safe_int(value, default=None):
    if isinstance(value, bool):
        return default
    if isinstance(value, float) and not value.is_integer():
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return default
        return normalized in {"1", "true", "yes", "on"}
    return bool(value)


def normalize_name(value: Optional[str]) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split()).strip()


def slugify(value: Optional[str]) -> str:
    normalized_name = normalize_name(value).lower()
    ascii_name = (
        unicodedata.normalize("NFKD", normalized_name)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")
    if not slug:
        slug = uuid4().hex
    return slug


def username_errors(username) -> List[str]:
    if username is None or (isinstance(username, str) and not username.strip()):
        return ["Username is required"]
    if not isinstance(username, str):
        return ["Username must be a string"]
    errors = []
    if len(username) < USERNAME_MIN_LENGTH:
        errors.append("Username must be at least 3 characters")
    if len(username) > USERNAME_MAX_LENGTH:
        errors.append("Username cannot exceed 30 characters")
    if not username_regex.match(username):
        errors.append("Username can only contain letters, numbers, and underscores")
    return errors


def email_errors(email) -> List[str]:
    if email is None or (isinstance(email, str) and not email.strip()):
        return ["Email is required"]
    if not isinstance(email, str) or not is_valid_email(email):
        return ["Please enter a valid email address"]
    return []


def password_errors(password, check_length: bool = True) -> List[str]:
    if password is None or password == "":
        return ["Password is required"]
    if not isinstance(password, str):
        return ["Password must be a string"]
    if check_length and len(password) < PASSWORD_MIN_LENGTH:
        return ["Password must be at least 6 characters"]
    return []


def validate_signup(payload: Dict) -> List[str]:
    username = payload.get("username")
    if isinstance(username, str):
        username = username.strip()
    return (
        username_errors(username)
        + email_errors(payload.get("email"))
        + password_errors(payload.get("password"))
    )


def validate_login(payload: Dict) -> List[str]:
    return email_errors(payload.get("email")) + password_errors(
        payload.get("password"), check_length=False
    )


def validate_profile_updates(updates: Dict) -> List[str]:
    errors: List[str] = []
    if "username" in updates:
        errors.extend(username_errors(updates["username"]))
    if "phone" in updates:
        phone = updates["phone"]
        if not isinstance(phone, str) or (phone and not phone_regex.match(phone)):
            errors.append(f"{phone} is not a valid phone number!")
    if "address" in updates:
        address = updates["address"]
        if not isinstance(address, str):
            errors.append("Address must be a string")
        elif len(address) > ADDRESS_MAX_LENGTH:
            errors.append("Address cannot exceed 200 characters")
    if "profile_image" in updates and not isinstance(updates["profile_image"], str):
        errors.append("Profile image must be a string")
    if "role" in updates and updates["role"] not in {"user", "admin"}:
        errors.append("Role must be 'user' or 'admin'")
    return errors
