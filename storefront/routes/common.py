from datetime import datetime
from typing import Dict, Optional

from flask import request

from ..errors import BadRequestError
from ..validation import parse_object_id


def json_body() -> Dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def isoformat(value) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else None


def require_object_id(value, label: str):
    object_id = parse_object_id(value)
    if object_id is None:
        raise BadRequestError(f"Invalid {label} identifier.")
    return object_id
