"""
Assessment blueprint.

Endpoints:
    GET    /api/v1/assessments                      — list (resident_id, assessor_id|faculty_id, epa_id, limit)
    POST   /api/v1/assessments                      — submit a new assessment
    GET    /api/v1/assessments/<id>                 — single assessment
    PATCH  /api/v1/assessments/<id>/acknowledge     — resident acknowledges (idempotent)
    DELETE /api/v1/assessments/<id>                 — soft delete
"""

import logging

from flask import Blueprint, jsonify, request

from rms.blueprints import get_store, parse_limit, register_error_handlers
from rms.services import reference_service
from rms.services.assessment_service import AssessmentService
from rms.utils.errors import E, api_error
from rms.utils.helpers import isoformat

logger = logging.getLogger(__name__)

assessment_bp = Blueprint("assessments", __name__, url_prefix="/api/v1/assessments")
register_error_handlers(assessment_bp)


def _service():
    return AssessmentService(get_store())


@assessment_bp.route("", methods=["GET"])
def list_assessments():
    limit, err = parse_limit()
    if err:
        return err

    epa_id = request.args.get("epa_id")
    if epa_id is not None:
        try:
            epa_id = int(epa_id)
        except ValueError:
            return api_error(E.VALIDATION_INVALID, "epa_id must be an integer",
                             details={"epa_id": "must be an integer"})

    records = _service().list_assessments(
        resident_id=request.args.get("resident_id"),
        epa_id=epa_id,
        assessor_id=request.args.get("assessor_id") or request.args.get("faculty_id"),
        limit=limit,
    )
    return jsonify(reference_service.describe_assessments(records))


@assessment_bp.route("", methods=["POST"])
def create_assessment():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error(E.BAD_REQUEST, "Request body must be a JSON object")

    assessment_id = _service().submit(data)
    return jsonify({"id": assessment_id, "message": "Assessment created"}), 201


@assessment_bp.route("/<assessment_id>", methods=["GET"])
def get_assessment(assessment_id):
    record = _service().get_assessment(assessment_id)
    return jsonify(reference_service.describe_assessments([record])[0])


@assessment_bp.route("/<assessment_id>/acknowledge", methods=["PATCH"])
def acknowledge_assessment(assessment_id):
    record = _service().acknowledge(assessment_id)
    return jsonify({
        "id": record.id,
        "acknowledged": True,
        "acknowledged_at": isoformat(record.acknowledged_at),
    })


@assessment_bp.route("/<assessment_id>", methods=["DELETE"])
def delete_assessment(assessment_id):
    data = request.get_json(silent=True) or {}
    _service().soft_delete(assessment_id, deleted_by=data.get("deleted_by"))
    return "", 204
