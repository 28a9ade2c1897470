import re
from typing import Dict, List

from flask import Blueprint, current_app, jsonify, request
from pymongo import DESCENDING, ReturnDocument

from ..errors import BadRequestError, NotFoundError
from ..middleware import current_account_id
from ..security import utcnow
from ..validation import parse_bool, parse_object_id, safe_float, safe_int
from .common import isoformat, json_body, require_object_id


def normalize_images(value) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(url).strip() for url in value if url and str(url).strip()]


def fetch_categories_by_ids(db, category_ids) -> Dict:
    object_ids = [value for value in category_ids if value is not None]
    if not object_ids:
        return {}
    return {
        document["_id"]: document
        for document in db.categories.find({"_id": {"$in": object_ids}})
    }


def serialize_product(product_document, category_map=None):
    if not product_document:
        return {}

    category_id = product_document.get("category")
    category_document = (category_map or {}).get(category_id)
    category = None
    if category_document:
        category = {
            "id": str(category_document["_id"]),
            "name": category_document.get("name", ""),
            "slug": category_document.get("slug", ""),
        }

    return {
        "id": str(product_document.get("_id")),
        "name": product_document.get("name", ""),
        "description": product_document.get("description", ""),
        "price": safe_float(product_document.get("price"), 0.0),
        "stock": safe_int(product_document.get("stock"), 0),
        "images": normalize_images(product_document.get("images")),
        "category_id": str(category_id) if category_id else None,
        "category": category,
        "featured": bool(product_document.get("featured")),
        "ratings": safe_float(product_document.get("ratings"), 0.0),
        "created_at": isoformat(product_document.get("created_at")),
        "updated_at": isoformat(product_document.get("updated_at")),
    }


def parse_product_fields(db, payload: Dict, partial: bool) -> Dict:
    """Validate the writable product fields present in ``payload``."""
    fields: Dict = {}

    for field in ("name", "description"):
        if field in payload or not partial:
            value = str(payload.get(field) or "").strip()
            if not value:
                raise BadRequestError(f"Product {field} is required.")
            fields[field] = value

    if "price" in payload or not partial:
        price_value = safe_float(payload.get("price"))
        if price_value is None:
            raise BadRequestError("Price must be a valid number.")
        if price_value < 0:
            raise BadRequestError("Price cannot be negative.")
        fields["price"] = round(price_value, 2)

    if "stock" in payload:
        stock_value = safe_int(payload.get("stock"))
        if stock_value is None or stock_value < 0:
            raise BadRequestError("Stock must be a non-negative whole number.")
        fields["stock"] = stock_value
    elif not partial:
        fields["stock"] = 0

    if "images" in payload or not partial:
        fields["images"] = normalize_images(payload.get("images"))

    if "featured" in payload or not partial:
        fields["featured"] = parse_bool(payload.get("featured"))

    if "category" in payload or not partial:
        category_id = parse_object_id(payload.get("category"))
        if category_id is None or not db.categories.find_one({"_id": category_id}):
            raise BadRequestError("Category does not exist")
        fields["category"] = category_id

    return fields


def create_products_blueprint(db, guard) -> Blueprint:
    bp = Blueprint("products", __name__)

    def load_product(product_id: str):
        product_document = db.products.find_one(
            {"_id": require_object_id(product_id, "product"), "is_deleted": {"$ne": True}}
        )
        if not product_document:
            raise NotFoundError("Product not found")
        return product_document

    @bp.route("", methods=["GET"])
    @bp.route("/", methods=["GET"])
    def list_products():
        query: Dict = {"is_deleted": {"$ne": True}}

        category_slug = (request.args.get("category") or "").strip()
        if category_slug:
            category_document = db.categories.find_one({"slug": category_slug})
            if not category_document:
                return jsonify({"products": []})
            query["category"] = category_document["_id"]

        featured = (request.args.get("featured") or "").strip().lower()
        if featured:
            query["featured"] = parse_bool(featured)

        search = (request.args.get("search") or "").strip()
        if search:
            query["name"] = {"$regex": re.escape(search), "$options": "i"}

        product_documents = list(db.products.find(query).sort("created_at", DESCENDING))
        category_map = fetch_categories_by_ids(
            db, {document.get("category") for document in product_documents}
        )
        return jsonify(
            {
                "products": [
                    serialize_product(document, category_map)
                    for document in product_documents
                ]
            }
        )

    @bp.route("/<product_id>", methods=["GET"])
    def get_product(product_id: str):
        product_document = load_product(product_id)
        category_map = fetch_categories_by_ids(db, [product_document.get("category")])
        return jsonify({"product": serialize_product(product_document, category_map)})

    @bp.route("", methods=["POST"])
    @bp.route("/", methods=["POST"])
    @guard.protect
    @guard.admin
    def create_product():
        fields = parse_product_fields(db, json_body(), partial=False)
        timestamp = utcnow()
        product_document = {
            **fields,
            "ratings": 0,
            "is_deleted": False,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        result = db.products.insert_one(product_document)
        current_app.logger.info(
            "Product %s created by %s", result.inserted_id, current_account_id()
        )

        created = db.products.find_one({"_id": result.inserted_id})
        category_map = fetch_categories_by_ids(db, [created.get("category")])
        return jsonify({"product": serialize_product(created, category_map)}), 201

    @bp.route("/<product_id>", methods=["PUT"])
    @guard.protect
    @guard.admin
    def update_product(product_id: str):
        object_id = require_object_id(product_id, "product")
        fields = parse_product_fields(db, json_body(), partial=True)
        fields["updated_at"] = utcnow()

        updated = db.products.find_one_and_update(
            {"_id": object_id, "is_deleted": {"$ne": True}},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Product not found")
        category_map = fetch_categories_by_ids(db, [updated.get("category")])
        return jsonify({"product": serialize_product(updated, category_map)})

    @bp.route("/<product_id>", methods=["DELETE"])
    @guard.protect
    @guard.admin
    def delete_product(product_id: str):
        object_id = require_object_id(product_id, "product")
        result = db.products.update_one(
            {"_id": object_id, "is_deleted": {"$ne": True}},
            {"$set": {"is_deleted": True, "updated_at": utcnow()}},
        )
        if not result.matched_count:
            raise NotFoundError("Product not found")

        current_app.logger.info("Product %s deleted by %s", object_id, current_account_id())
        return jsonify({"message": "Product deleted successfully"})

    return bp
