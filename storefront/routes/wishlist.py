from bson import ObjectId
from flask import Blueprint, jsonify
from pymongo import ReturnDocument

from ..errors import BadRequestError, NotFoundError
from ..middleware import current_account_id
from ..security import utcnow
from ..validation import parse_object_id
from .cart import PRODUCT_SUMMARY_PROJECTION, summarize_product
from .common import json_body, require_object_id


def create_wishlist_blueprint(db, guard) -> Blueprint:
    bp = Blueprint("wishlist", __name__)

    def owner_id() -> ObjectId:
        return ObjectId(current_account_id())

    def serialize_products(wishlist_document):
        product_ids = list(wishlist_document.get("products") or [])
        products = {
            document["_id"]: document
            for document in db.products.find(
                {"_id": {"$in": product_ids}}, PRODUCT_SUMMARY_PROJECTION
            )
        }
        return [
            summarize_product(products[product_id])
            for product_id in product_ids
            if product_id in products
        ]

    @bp.route("", methods=["GET"])
    @bp.route("/", methods=["GET"])
    @guard.protect
    def get_wishlist():
        wishlist_document = db.wishlists.find_one_and_update(
            {"user": owner_id()},
            {"$setOnInsert": {"products": [], "created_at": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return jsonify({"products": serialize_products(wishlist_document)})

    @bp.route("/add", methods=["POST"])
    @guard.protect
    def add_to_wishlist():
        product_id = require_object_id(json_body().get("productId"), "product")
        if not db.products.find_one({"_id": product_id, "is_deleted": {"$ne": True}}):
            raise NotFoundError("Product not found")

        wishlist_document = db.wishlists.find_one({"user": owner_id()})
        if not wishlist_document:
            wishlist_document = {
                "user": owner_id(),
                "products": [product_id],
                "created_at": utcnow(),
            }
            db.wishlists.insert_one(wishlist_document)
            return jsonify({"products": serialize_products(wishlist_document)}), 201

        if product_id in (wishlist_document.get("products") or []):
            raise BadRequestError("Product already in wishlist")

        updated = db.wishlists.find_one_and_update(
            {"_id": wishlist_document["_id"]},
            {"$addToSet": {"products": product_id}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return jsonify({"products": serialize_products(updated)})

    @bp.route("/remove/<product_id>", methods=["DELETE"])
    @guard.protect
    def remove_from_wishlist(product_id: str):
        wishlist_document = db.wishlists.find_one({"user": owner_id()})
        if not wishlist_document:
            raise NotFoundError("Wishlist not found")

        product_object_id = parse_object_id(product_id)
        updated = db.wishlists.find_one_and_update(
            {"_id": wishlist_document["_id"]},
            {"$pull": {"products": product_object_id}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return jsonify({"products": serialize_products(updated)})

    return bp
