from bson import ObjectId
from flask import Blueprint, jsonify
from pymongo import ReturnDocument

from ..errors import BadRequestError, NotFoundError
from ..middleware import current_account_id
from ..security import utcnow
from ..validation import parse_object_id, safe_float, safe_int
from .common import json_body, require_object_id

PRODUCT_SUMMARY_PROJECTION = {"name": 1, "price": 1, "images": 1}


def summarize_product(product_document):
    if not product_document:
        return None
    return {
        "id": str(product_document["_id"]),
        "name": product_document.get("name", ""),
        "price": safe_float(product_document.get("price"), 0.0),
        "images": list(product_document.get("images") or []),
    }


def parse_quantity(value, default=None) -> int:
    if value is None and default is not None:
        return default
    quantity = safe_int(value)
    if quantity is None or quantity < 1:
        raise BadRequestError("Quantity must be a positive whole number.")
    return quantity


def create_cart_blueprint(db, guard) -> Blueprint:
    bp = Blueprint("cart", __name__)

    def owner_id() -> ObjectId:
        return ObjectId(current_account_id())

    def serialize_items(cart_document):
        items = cart_document.get("items") or []
        product_ids = [item.get("product") for item in items]
        products = {
            document["_id"]: document
            for document in db.products.find(
                {"_id": {"$in": product_ids}}, PRODUCT_SUMMARY_PROJECTION
            )
        }
        return [
            {
                "id": str(item["_id"]),
                "product": summarize_product(products.get(item.get("product"))),
                "quantity": item.get("quantity", 0),
            }
            for item in items
        ]

    def load_cart():
        cart_document = db.carts.find_one({"user": owner_id()})
        if not cart_document:
            raise NotFoundError("Cart not found")
        return cart_document

    def find_item(cart_document, item_id: str):
        item_object_id = parse_object_id(item_id)
        for index, item in enumerate(cart_document.get("items") or []):
            if item_object_id is not None and item.get("_id") == item_object_id:
                return index, item
        raise NotFoundError("Item not found in cart")

    def save_items(cart_document, items):
        updated = db.carts.find_one_and_update(
            {"_id": cart_document["_id"]},
            {"$set": {"items": items, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return jsonify({"items": serialize_items(updated)})

    @bp.route("", methods=["GET"])
    @bp.route("/", methods=["GET"])
    @guard.protect
    def get_cart():
        cart_document = db.carts.find_one_and_update(
            {"user": owner_id()},
            {"$setOnInsert": {"items": [], "created_at": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return jsonify({"id": str(cart_document["_id"]), "items": serialize_items(cart_document)})

    @bp.route("/add", methods=["POST"])
    @guard.protect
    def add_to_cart():
        payload = json_body()
        product_id = require_object_id(payload.get("productId"), "product")
        quantity = parse_quantity(payload.get("quantity"), default=1)

        product_document = db.products.find_one({"_id": product_id})
        if (
            not product_document
            or product_document.get("is_deleted")
            or safe_int(product_document.get("stock"), 0) < quantity
        ):
            raise BadRequestError("Product not available")

        cart_document = db.carts.find_one({"user": owner_id()})
        if not cart_document:
            timestamp = utcnow()
            cart_document = {"user": owner_id(), "items": [], "created_at": timestamp}
            cart_document["_id"] = db.carts.insert_one(cart_document).inserted_id

        items = list(cart_document.get("items") or [])
        for item in items:
            if item.get("product") == product_id:
                item["quantity"] = item.get("quantity", 0) + quantity
                break
        else:
            items.append({"_id": ObjectId(), "product": product_id, "quantity": quantity})

        return save_items(cart_document, items)

    @bp.route("/item/<item_id>", methods=["PUT"])
    @guard.protect
    def update_cart_item(item_id: str):
        quantity = parse_quantity(json_body().get("quantity"))
        cart_document = load_cart()
        index, item = find_item(cart_document, item_id)

        product_document = db.products.find_one({"_id": item.get("product")})
        if not product_document or safe_int(product_document.get("stock"), 0) < quantity:
            raise BadRequestError("Quantity exceeds available stock")

        items = list(cart_document.get("items") or [])
        items[index] = {**item, "quantity": quantity}
        return save_items(cart_document, items)

    @bp.route("/item/<item_id>", methods=["DELETE"])
    @guard.protect
    def remove_from_cart(item_id: str):
        cart_document = load_cart()
        item_object_id = parse_object_id(item_id)
        items = [
            item
            for item in cart_document.get("items") or []
            if item.get("_id") != item_object_id
        ]
        return save_items(cart_document, items)

    @bp.route("/clear", methods=["DELETE"])
    @guard.protect
    def clear_cart():
        db.carts.update_one(
            {"user": owner_id()}, {"$set": {"items": [], "updated_at": utcnow()}}
        )
        return jsonify({"message": "Cart cleared successfully"})

    return bp
