from flask import Blueprint, jsonify

from ..rate_limit import rate_limited
from .common import json_body


def create_auth_blueprint(auth_service, limiter=None) -> Blueprint:
    bp = Blueprint("auth", __name__)

    @bp.route("/signup", methods=["POST"])
    def signup():
        payload = json_body()
        profile = auth_service.signup(payload)
        return jsonify(profile), 201

    @bp.route("/login", methods=["POST"])
    @rate_limited(limiter, "login")
    def login():
        payload = json_body()
        return jsonify(auth_service.login(payload)), 200

    @bp.route("/forgot-password", methods=["POST"])
    @rate_limited(limiter, "forgot-password")
    def forgot_password():
        payload = json_body()
        message = auth_service.forgot_password(payload)
        return jsonify({"message": message}), 200

    @bp.route("/reset-password/<token>", methods=["POST"])
    def reset_password(token: str):
        payload = json_body()
        auth_service.reset_password(token, payload)
        return jsonify({"message": "Password reset successful"}), 200

    return bp
