from typing import Dict, List, Optional

from bson import ObjectId
from flask import Blueprint, current_app, jsonify
from pymongo import DESCENDING

from ..errors import AuthorizationError, BadRequestError, NotFoundError
from ..middleware import current_account_id
from ..security import utcnow
from ..validation import safe_float, safe_int
from .common import isoformat, json_body, require_object_id

SHIPPING_REQUIRED_FIELDS = ("fullName", "phone", "address", "city", "postalCode")
SHIPPING_FIELDS = SHIPPING_REQUIRED_FIELDS + ("paymentMethod",)


def normalize_order_item(payload) -> Optional[Dict]:
    if not isinstance(payload, dict):
        return None

    product_id = str(payload.get("id") or payload.get("productId") or "").strip()
    if not product_id:
        return None

    quantity = safe_int(payload.get("qty"), 1) or 1
    price_value = safe_float(payload.get("price"), 0.0)
    return {
        "id": product_id,
        "name": str(payload.get("name") or "").strip(),
        "qty": max(1, quantity),
        "price": round(max(0.0, price_value), 2),
    }


def calculate_order_total(items: List[Dict]) -> float:
    return round(sum(item["price"] * item["qty"] for item in items), 2)


def serialize_order(order_document):
    if not order_document:
        return {}

    return {
        "id": str(order_document.get("_id")),
        "user": str(order_document.get("user")),
        "items": list(order_document.get("items") or []),
        "shipping": dict(order_document.get("shipping") or {}),
        "total_amount": safe_float(order_document.get("total_amount"), 0.0),
        "status": order_document.get("status", "Pending"),
        "payment_status": order_document.get("payment_status", "Pending"),
        "created_at": isoformat(order_document.get("created_at")),
        "updated_at": isoformat(order_document.get("updated_at")),
    }


def create_orders_blueprint(db, guard) -> Blueprint:
    bp = Blueprint("orders", __name__)

    @bp.route("", methods=["POST"])
    @bp.route("/", methods=["POST"])
    @guard.protect
    def create_order():
        payload = json_body()
        raw_items = payload.get("items")
        items: List[Dict] = []
        if isinstance(raw_items, list):
            for raw_item in raw_items:
                normalized = normalize_order_item(raw_item)
                if normalized:
                    items.append(normalized)
        if not items:
            raise BadRequestError("No items in the order")

        raw_shipping = payload.get("shipping")
        shipping = raw_shipping if isinstance(raw_shipping, dict) else {}
        shipping = {
            field: str(shipping.get(field) or "").strip()
            for field in SHIPPING_FIELDS
        }
        if not all(shipping[field] for field in SHIPPING_REQUIRED_FIELDS):
            raise BadRequestError("Shipping information incomplete")

        timestamp = utcnow()
        order_document = {
            "user": ObjectId(current_account_id()),
            "items": items,
            "shipping": shipping,
            "total_amount": calculate_order_total(items),
            "status": "Pending",
            "payment_status": "Pending"
            if shipping["paymentMethod"].lower() == "cod"
            else "Completed",
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        result = db.orders.insert_one(order_document)
        order_document["_id"] = result.inserted_id

        current_app.logger.info(
            "Order %s placed by %s", result.inserted_id, current_account_id()
        )
        return (
            jsonify(
                {"message": "Order placed successfully", "order": serialize_order(order_document)}
            ),
            201,
        )

    @bp.route("/user", methods=["GET"])
    @guard.protect
    def list_user_orders():
        cursor = db.orders.find({"user": ObjectId(current_account_id())}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return jsonify({"orders": [serialize_order(document) for document in cursor]})

    @bp.route("/all", methods=["GET"])
    @guard.protect
    @guard.admin
    def list_all_orders():
        cursor = db.orders.find().sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        return jsonify({"orders": [serialize_order(document) for document in cursor]})

    @bp.route("/<order_id>", methods=["GET"])
    @guard.protect
    def get_order(order_id: str):
        order_document = db.orders.find_one({"_id": require_object_id(order_id, "order")})
        if not order_document:
            raise NotFoundError("Order not found")

        if str(order_document.get("user")) != current_account_id() and not guard.is_admin():
            raise AuthorizationError("Not authorized to access this order")
        return jsonify({"order": serialize_order(order_document)})

    return bp
