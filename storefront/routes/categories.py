from flask import Blueprint, current_app, jsonify
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..errors import BadRequestError, ConflictError, NotFoundError
from ..middleware import current_account_id
from ..security import utcnow
from ..validation import normalize_name, slugify
from .common import isoformat, json_body, require_object_id


def serialize_category(category_document):
    if not category_document:
        return {}

    return {
        "id": str(category_document.get("_id")),
        "name": category_document.get("name", ""),
        "slug": category_document.get("slug", ""),
        "description": category_document.get("description", "") or "",
        "image": category_document.get("image", "") or "",
        "created_at": isoformat(category_document.get("created_at")),
        "updated_at": isoformat(category_document.get("updated_at")),
    }


def create_categories_blueprint(db, guard) -> Blueprint:
    bp = Blueprint("categories", __name__)

    @bp.route("", methods=["GET"])
    @bp.route("/", methods=["GET"])
    def list_categories():
        category_documents = db.categories.find().sort("name", ASCENDING)
        return jsonify(
            {"categories": [serialize_category(document) for document in category_documents]}
        )

    @bp.route("/<category_id>", methods=["GET"])
    def get_category(category_id: str):
        category_document = db.categories.find_one(
            {"_id": require_object_id(category_id, "category")}
        )
        if not category_document:
            raise NotFoundError("Category not found")
        return jsonify({"category": serialize_category(category_document)})

    @bp.route("", methods=["POST"])
    @bp.route("/", methods=["POST"])
    @guard.protect
    @guard.admin
    def create_category():
        payload = json_body()
        name = normalize_name(payload.get("name"))
        if len(name) < 2:
            raise BadRequestError("Please provide a category name with at least two characters.")

        timestamp = utcnow()
        category_document = {
            "name": name,
            "slug": slugify(name),
            "description": str(payload.get("description") or "").strip(),
            "image": str(payload.get("image") or "").strip(),
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            result = db.categories.insert_one(category_document)
        except DuplicateKeyError:
            raise ConflictError("A category with this name already exists")

        current_app.logger.info(
            "Category %s created by %s", result.inserted_id, current_account_id()
        )
        created = db.categories.find_one({"_id": result.inserted_id})
        return jsonify({"category": serialize_category(created)}), 201

    @bp.route("/<category_id>", methods=["PUT"])
    @guard.protect
    @guard.admin
    def update_category(category_id: str):
        object_id = require_object_id(category_id, "category")
        payload = json_body()

        updates = {"updated_at": utcnow()}
        if "name" in payload:
            name = normalize_name(payload.get("name"))
            if len(name) < 2:
                raise BadRequestError(
                    "Please provide a category name with at least two characters."
                )
            updates["name"] = name
            updates["slug"] = slugify(name)
        for field in ("description", "image"):
            if field in payload:
                updates[field] = str(payload.get(field) or "").strip()

        try:
            updated = db.categories.find_one_and_update(
                {"_id": object_id},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("A category with this name already exists")
        if not updated:
            raise NotFoundError("Category not found")
        return jsonify({"category": serialize_category(updated)})

    @bp.route("/<category_id>", methods=["DELETE"])
    @guard.protect
    @guard.admin
    def delete_category(category_id: str):
        object_id = require_object_id(category_id, "category")
        result = db.categories.delete_one({"_id": object_id})
        if not result.deleted_count:
            raise NotFoundError("Category not found")

        current_app.logger.info("Category %s deleted by %s", object_id, current_account_id())
        return jsonify({"message": "Category deleted successfully"})

    return bp
