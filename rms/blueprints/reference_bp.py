"""
Reference data blueprint — dropdown sources for the assessment form.

Endpoints:
    GET /api/v1/epas                  — active EPAs of the configured specialty (?category)
    GET /api/v1/faculty               — active faculty by last name
    GET /api/v1/clinical-sites        — active sites by classification, name
    GET /api/v1/entrustment-levels    — the 1-5 scale with descriptions
"""

from flask import Blueprint, current_app, jsonify, request

from rms.blueprints import register_error_handlers
from rms.models.epa import EPA_CATEGORIES
from rms.services import reference_service
from rms.utils.errors import E, api_error

reference_bp = Blueprint("reference", __name__, url_prefix="/api/v1")
register_error_handlers(reference_bp)


@reference_bp.route("/epas", methods=["GET"])
def list_epas():
    specialty = request.args.get("specialty_code") or current_app.config["RMS_SPECIALTY_CODE"]
    category = request.args.get("category")
    if category is not None and category not in EPA_CATEGORIES:
        return api_error(E.VALIDATION_INVALID, f"Unknown EPA category: {category}",
                         details={"category": f"must be one of: {', '.join(EPA_CATEGORIES)}"})
    return jsonify(reference_service.list_epas(specialty, category))


@reference_bp.route("/faculty", methods=["GET"])
def list_faculty():
    return jsonify(reference_service.list_faculty())


@reference_bp.route("/clinical-sites", methods=["GET"])
def list_clinical_sites():
    return jsonify(reference_service.list_clinical_sites())


@reference_bp.route("/entrustment-levels", methods=["GET"])
def list_entrustment_levels():
    return jsonify(reference_service.entrustment_levels())
