"""
User directory blueprint — the people behind the user selector.

Endpoints:
    GET /api/v1/users          — active users by last name, with role names
    GET /api/v1/users/<id>     — one user with roles and resident / faculty record
"""

from flask import Blueprint, jsonify

from rms.blueprints import register_error_handlers
from rms.services import reference_service

user_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")
register_error_handlers(user_bp)


@user_bp.route("", methods=["GET"])
def list_users():
    return jsonify(reference_service.list_users())


@user_bp.route("/<user_id>", methods=["GET"])
def get_user(user_id):
    return jsonify(reference_service.get_user(user_id))
